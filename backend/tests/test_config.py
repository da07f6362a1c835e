import pydantic
import pytest

from sitework.core.config import Settings


def test_budget_policy_setting_is_checked_on_load():
    assert Settings(BUDGET_POLICY="block").BUDGET_POLICY == "block"
    with pytest.raises(pydantic.ValidationError):
        Settings(BUDGET_POLICY="strict")
