import pytest

from htosc.osc.template import (
    DEFAULT_PATTERN,
    EmptyPatternError,
    Template,
    TemplateError,
    Token,
    TokenKind,
    UnknownTokenError,
    parse_template,
    validate_pattern,
)


@pytest.mark.parametrize("pattern", ["", "   ", "\t\n "])
def test_empty_pattern_is_rejected(pattern):
    with pytest.raises(EmptyPatternError):
        parse_template(pattern)


def test_unknown_token_rejects_whole_template():
    with pytest.raises(UnknownTokenError) as excinfo:
        parse_template("/addr yaw foo")
    assert excinfo.value.fragment == "foo"


def test_unknown_negated_token_reports_raw_fragment():
    with pytest.raises(UnknownTokenError) as excinfo:
        parse_template("/addr -bar")
    assert excinfo.value.fragment == "-bar"


@pytest.mark.parametrize("fragment", ["YAW", "--yaw", "yaw++", "-", "w", "q"])
def test_near_miss_tokens_are_unknown(fragment):
    with pytest.raises(UnknownTokenError):
        parse_template(f"/addr {fragment}")


def test_negation_flag():
    template = parse_template("/addr -yaw pitch")
    assert template.address == "/addr"
    assert template.tokens == (
        Token(TokenKind.YAW, negate=True),
        Token(TokenKind.PITCH, negate=False),
    )


def test_repeated_whitespace_is_ignored():
    template = parse_template("  /SceneRotator/ypr   yaw\tpitch  roll ")
    assert template.address == "/SceneRotator/ypr"
    assert [t.kind for t in template.tokens] == [TokenKind.YAW, TokenKind.PITCH, TokenKind.ROLL]


def test_address_only_template_has_no_tokens():
    template = parse_template("/ping")
    assert template == Template("/ping", ())


def test_address_is_not_validated():
    assert parse_template("not-an-osc-address qw").address == "not-an-osc-address"


def test_all_token_names_are_recognized():
    names = "yaw pitch roll yaw+ pitch+ roll+ qw qx qy qz"
    template = parse_template(f"/all {names}")
    assert [t.kind.value for t in template.tokens] == names.split()


def test_template_renders_back_to_pattern():
    assert str(parse_template("/x  -yaw+ qw")) == "/x -yaw+ qw"


def test_token_kind_properties():
    assert TokenKind.ROLL_WRAPPED.is_angle
    assert TokenKind.ROLL_WRAPPED.is_wrapped
    assert TokenKind.ROLL_WRAPPED.component == "roll"
    assert not TokenKind.QZ.is_angle
    assert TokenKind.QZ.component == "z"


def test_validate_pattern():
    assert validate_pattern(DEFAULT_PATTERN) is None
    assert isinstance(validate_pattern(""), EmptyPatternError)
    error = validate_pattern("/a yaw nope")
    assert isinstance(error, UnknownTokenError)
    assert isinstance(error, TemplateError)
    assert isinstance(error, ValueError)
