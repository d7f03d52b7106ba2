from __future__ import annotations

import pytest

from autopunch.core.exceptions import LoginError
from autopunch.portal.token import extract_verification_token, looks_like_token

REAL_TOKEN = "CfDJ8Nq1x2y3z4" + "A" * 60 + "_-9"


def _input(value: str, quote: str = '"') -> str:
    return f"<input name={quote}__RequestVerificationToken{quote} type={quote}hidden{quote} value={quote}{value}{quote} />"


def test_plain_token_is_returned():
    html = f"<form>{_input(REAL_TOKEN)}</form>"
    assert extract_verification_token(html) == REAL_TOKEN


def test_function_reference_is_skipped_for_later_real_token():
    html = "<form>" + _input("getAntiForgeryToken()") + _input(REAL_TOKEN) + "</form>"
    assert extract_verification_token(html) == REAL_TOKEN


def test_short_value_is_skipped():
    html = _input("abc123") + _input(REAL_TOKEN)
    assert extract_verification_token(html) == REAL_TOKEN


def test_single_quotes_and_other_inputs_are_handled():
    html = (
        "<input name='Username' value='someone-with-a-very-long-username-value-that-is-not-a-token-at-all' />"
        + _input(REAL_TOKEN, quote="'")
    )
    assert extract_verification_token(html) == REAL_TOKEN


def test_missing_token_raises_login_error():
    html = _input("getAntiForgeryToken") + "<p>no token here</p>"
    with pytest.raises(LoginError, match="verification token"):
        extract_verification_token(html)


@pytest.mark.parametrize(
    "value, expected",
    [
        (REAL_TOKEN, True),
        ("x" * 49, False),
        ("getAntiForgeryToken" + "x" * 60, False),
        ("window.helper(" + "x" * 60 + ")", False),
    ],
)
def test_looks_like_token(value, expected):
    assert looks_like_token(value) is expected


def test_data_value_attribute_is_not_taken_for_the_value():
    decoy = "d" * 64
    html = (
        f'<input data-value="{decoy}" name="__RequestVerificationToken" type="hidden" value="{REAL_TOKEN}" />'
    )
    assert extract_verification_token(html) == REAL_TOKEN
