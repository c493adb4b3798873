"""
Shared test fixtures for the form builder test suite.

Provides the example forms under ``formbuilder/schemas`` and a
complete, valid response to the client-intake form.
"""

import json
from pathlib import Path
from typing import Any

import pytest

from formbuilder.core.schema import Form

SCHEMAS_DIR = Path(__file__).parent.parent / "schemas"


@pytest.fixture
def client_intake_data() -> dict:
    """Raw JSON of the client-intake example form."""
    with open(SCHEMAS_DIR / "client-intake.json", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def client_intake_form(client_intake_data) -> Form:
    """The client-intake example form."""
    return Form.model_validate(client_intake_data)


@pytest.fixture
def valid_intake_answers() -> dict[str, Any]:
    """A complete, valid response to the client-intake form."""
    return {
        "full_name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "+1 555 0100",
        "age": 34,
        "has_pet": "Yes",
        "pet_type": "Dog",
        "pet_count": 2,
        "services": ["Grooming"],
        "terms": True,
        "signature": "Jane Doe",
    }
