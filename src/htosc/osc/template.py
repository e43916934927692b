# htosc/osc/template.py
"""OSCメッセージのテンプレート文字列（アドレス + トークン列）を解析するモジュール。"""

from dataclasses import dataclass
from enum import Enum


# --- 定数
DEFAULT_PATTERN = "/SceneRotator/ypr yaw pitch roll"
NEGATE_PREFIX = "-"


class TokenKind(Enum):
    """テンプレートで使用できる値の種類。"""

    YAW = "yaw"
    PITCH = "pitch"
    ROLL = "roll"
    YAW_WRAPPED = "yaw+"
    PITCH_WRAPPED = "pitch+"
    ROLL_WRAPPED = "roll+"
    QW = "qw"
    QX = "qx"
    QY = "qy"
    QZ = "qz"

    @property
    def is_angle(self) -> bool:
        """角度（度）を表すトークンかどうか。"""
        return self.value.rstrip("+") in ("yaw", "pitch", "roll")

    @property
    def is_wrapped(self) -> bool:
        """0〜360° 表現のトークンかどうか。"""
        return self.value.endswith("+")

    @property
    def component(self) -> str:
        """角度名（yaw/pitch/roll）またはクォータニオン成分名（w/x/y/z）。"""
        if self.is_angle:
            return self.value.rstrip("+")
        return self.value[1:]


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    negate: bool = False

    def __str__(self) -> str:
        return (NEGATE_PREFIX if self.negate else "") + self.kind.value


@dataclass(frozen=True)
class Template:
    """解析済みテンプレート。生成後は変更しない。"""

    address: str
    tokens: tuple[Token, ...] = ()

    def __str__(self) -> str:
        return " ".join([self.address, *(str(token) for token in self.tokens)])


class TemplateError(ValueError):
    """テンプレート解析エラーの基底クラス。"""


class EmptyPatternError(TemplateError):
    def __init__(self) -> None:
        super().__init__("テンプレートが空です。アドレスを指定してください。")


class UnknownTokenError(TemplateError):
    def __init__(self, fragment: str) -> None:
        super().__init__(f"不明なトークンです: {fragment!r}")
        self.fragment = fragment


_TOKEN_KINDS: dict[str, TokenKind] = {kind.value: kind for kind in TokenKind}


def _parse_token(fragment: str) -> Token:
    """1つのトークン文字列を ``Token`` に変換する。"""
    name = fragment
    negate = name.startswith(NEGATE_PREFIX)
    if negate:
        name = name[len(NEGATE_PREFIX):]
    kind = _TOKEN_KINDS.get(name)
    if kind is None:
        raise UnknownTokenError(fragment)
    return Token(kind, negate)


def parse_template(pattern: str) -> Template:
    """空白区切りのテンプレート文字列を解析する。

    先頭の要素をそのままアドレスとし、残りを値トークンとして解釈する。
    1つでも不明なトークンがあればテンプレート全体を不正とする。

    パラメータ
    ----------
    pattern : str
        例: ``"/SceneRotator/ypr yaw pitch roll"``

    戻り値
    ------
    Template
        解析結果。

    例外
    ----
    EmptyPatternError
        空白以外の要素が1つもない場合。
    UnknownTokenError
        認識できないトークンが含まれる場合。
    """
    fragments = pattern.split()
    if not fragments:
        raise EmptyPatternError()

    address, *rest = fragments
    tokens = tuple(_parse_token(fragment) for fragment in rest)
    return Template(address, tokens)


def validate_pattern(pattern: str) -> TemplateError | None:
    """テンプレートが有効なら ``None``、不正ならその理由を返す。"""
    try:
        parse_template(pattern)
    except TemplateError as e:
        return e
    return None
