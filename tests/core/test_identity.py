"""Tests for identity helpers and model identity.

Critical Invariants:
- Local ids are unique and never reused
- None and "" are not identities; 0 is
- A model is new until its identity differs from its local id
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from modelsync import (
    LOCAL_ID_KEY,
    IdentityConfig,
    Model,
    ValidationError,
    has_identity,
    new_local_id,
)


class LocalModel(Model):
    def serialize(self):
        return {}


class KeyedModel(Model):
    identity_config = IdentityConfig(identity_key="key")

    def __init__(self, key=None):
        super().__init__()
        self.key = key

    def serialize(self):
        return {"key": self.key}


def test_local_ids_are_unique():
    ids = {new_local_id() for _ in range(1000)}
    assert len(ids) == 1000


def test_has_identity_absent_values():
    assert not has_identity(None)
    assert not has_identity("")


@given(value=st.one_of(st.integers(), st.text(min_size=1)))
def test_has_identity_present_values(value):
    """PROPERTY: every non-empty string and every integer (including 0) is an identity."""
    assert has_identity(value)


def test_default_identity_is_local_id():
    model = LocalModel()

    assert LocalModel.identity_config.identity_key == LOCAL_ID_KEY
    assert model.identity == model.local_id
    assert model.is_new


def test_model_with_key_is_new_until_identity_set():
    model = KeyedModel()
    assert model.is_new

    model.set_identity("server-1")

    assert model.key == "server-1"
    assert model.identity == "server-1"
    assert not model.is_new


def test_identity_equal_to_local_id_counts_as_new():
    model = KeyedModel()
    model.key = model.local_id

    assert model.is_new


def test_zero_is_a_valid_identity():
    model = KeyedModel(key=0)

    assert not model.is_new


def test_set_identity_rejected_for_local_id_identity():
    model = LocalModel()

    with pytest.raises(ValidationError, match="local id"):
        model.set_identity("server-1")

    assert model.identity == model.local_id
