"""
Global pytest Configuration and Fixture Definitions

Shared fixtures for the derived field validation test suite: the document type rule
table, sample derived field payloads and structlog isolation between tests.
"""

import pytest
import structlog

from src.business.models import RuleTable
from src.business.validators import DOCUMENT_FIELD_RULES, DocType


@pytest.fixture(autouse=True)
def reset_structlog():
    """Restore structlog defaults so log capture works in every test."""
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()


@pytest.fixture
def document_rule_table():
    """Rule table for the PAN and ADDRESS_PROOF document types."""
    return RuleTable(DOCUMENT_FIELD_RULES, domain=DocType)


@pytest.fixture
def sample_pan_fields():
    return {'panNo': 'ABCDE1234F'}


@pytest.fixture
def sample_address_fields():
    return {
        'address1': '12 Main St',
        'city': 'Metropolis',
        'state': 'NY',
        'pincode': '123456',
    }


@pytest.fixture
def sample_update_user_payload(sample_address_fields):
    """Raw UpdateUserValidator input using the external (camelCase) keys."""
    return {
        'userId': 'user-123',
        'docType': 'ADDRESS_PROOF',
        'fields': dict(sample_address_fields),
    }
