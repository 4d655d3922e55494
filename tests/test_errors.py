import pytest

from plantservant.errors import DomainError, ErrorCategory, ErrorCode


def test_success_is_lowest_bit():
    assert ErrorCode(1) is ErrorCode.SUCCESS
    assert ErrorCode.SUCCESS == 1


@pytest.mark.parametrize(
    "code, category",
    [
        (ErrorCode.DOMAIN_UNKNOWN, ErrorCategory.DOMAIN),
        (ErrorCode.REPOSITORY_UNKNOWN, ErrorCategory.REPOSITORY),
        (ErrorCode.SERVICE_UNKNOWN, ErrorCategory.SERVICE),
        (ErrorCode.CONTROLLER_UNKNOWN, ErrorCategory.CONTROLLER),
        (ErrorCode.UTIL_UNKNOWN, ErrorCategory.UTIL),
        (ErrorCode.VIEW_UNKNOWN, ErrorCategory.VIEW),
        (ErrorCode.ETC_UNKNOWN, ErrorCategory.ETC),
    ],
)
def test_layer_codes_start_at_category_bit(code, category):
    assert code == 1 << category
    assert code.category is category


def test_base_codes_belong_to_base():
    assert ErrorCode(1).category is ErrorCategory.BASE
    assert ErrorCode(2) is ErrorCode.UNKNOWN
    assert ErrorCode(2).category is ErrorCategory.BASE


def test_codes_are_distinct_single_bits():
    values = [int(code) for code in ErrorCode]
    assert len(set(values)) == len(values)
    assert all(v & (v - 1) == 0 for v in values)
    for code in ErrorCode:
        assert ErrorCode(int(code)) is code


def test_domain_error_defaults_to_domain_code():
    error = DomainError("bad value")
    assert error.code is ErrorCode.DOMAIN_UNKNOWN
    assert str(error) == "bad value"
    with pytest.raises(ValueError):
        raise error


def test_domain_error_keeps_given_code():
    assert DomainError("x", ErrorCode.UNKNOWN).code is ErrorCode.UNKNOWN