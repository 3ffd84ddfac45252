"""Exception hierarchy for the vCard 4.0 parser.

Every failure raised by ``vcard4`` derives from :class:`VCardError`. The
intermediate classes mirror the broad categories a caller may want to catch:
structural framing, lexical shape, unknown names, bad values, card-level
semantics, and errors coming out of the libraries the value parsers delegate
to. Class names follow the taxonomy in RFC-speak rather than Python's usual
``...Error`` suffix so they read the same as the messages they produce.
"""
from __future__ import annotations


class VCardError(ValueError):
    """Base class for every parse failure.

    ``line`` is the 1-based physical line where the offending logical line
    starts. It is filled in by the parser as the error propagates, so
    sub-parsers raise without knowing where they are.
    """

    message = "vcard error"

    def __init__(self, *args: object, line: int | None = None) -> None:
        super().__init__(*args)
        self.line = line

    def describe(self) -> str:
        return self.message.format(*self.args)

    def at_line(self, line: int) -> VCardError:
        if self.line is None:
            self.line = line
        return self

    def __str__(self) -> str:
        text = self.describe()
        if self.line is not None:
            return f"line {self.line}: {text}"
        return text


# ── Structural ─────────────────────────────────────────────────────────────────

class StructuralError(VCardError):
    pass


class TokenExpected(StructuralError):
    message = "input token was expected but reached EOF"


class DelimiterExpected(StructuralError):
    message = "property or parameter delimiter expected in '{0}'"


class VersionMisplaced(StructuralError):
    message = "version must be the first property and must be 4.0"


# ── Lexical ────────────────────────────────────────────────────────────────────

class LexicalError(VCardError):
    pass


class ControlCharacter(LexicalError):
    message = "control characters are not allowed, got {0!r}"


class IncorrectToken(LexicalError):
    message = "input token '{0}' was incorrect"


class NotQuoted(LexicalError):
    message = "'{0}' must be enclosed in quotes"


# ── Names ──────────────────────────────────────────────────────────────────────

class NamingError(VCardError):
    pass


class UnknownPropertyName(NamingError):
    message = "property name '{0}' is not supported"


class UnknownParameter(NamingError):
    message = "unknown parameter '{0}'"


class UnknownValueType(NamingError):
    message = "value type '{0}' is not supported"


class UnknownKind(NamingError):
    message = "kind '{0}' is not supported"


class UnknownSex(NamingError):
    message = "sex '{0}' is not supported"


class UnknownRelatedType(NamingError):
    message = "related type value '{0}' is not supported"


class UnknownTelephoneType(NamingError):
    message = "telephone type value '{0}' is not supported"


class CharsetParameter(NamingError):
    message = "CHARSET='{0}' is invalid, expected UTF-8"


# ── Values ─────────────────────────────────────────────────────────────────────

class InvalidValueError(VCardError):
    pass


class InvalidPropertyValue(InvalidValueError):
    message = "property value '{0}' is invalid"


class InvalidTime(InvalidValueError):
    message = "time '{0}' is invalid"


class InvalidDate(InvalidValueError):
    message = "date '{0}' is invalid"


class InvalidDateTime(InvalidValueError):
    message = "date time '{0}' is not valid, maybe missing 'T' delimiter"


class InvalidAddress(InvalidValueError):
    message = "delivery address '{0}' is invalid"


class InvalidBoolean(InvalidValueError):
    message = "value '{0}' is not a valid boolean"


class InvalidClientPidMap(InvalidValueError):
    message = "client PID map '{0}' is not valid"


class InvalidUtcOffset(InvalidValueError):
    message = "UTC offset '{0}' is invalid, expected [+-]hhmm"


class InvalidPid(InvalidValueError):
    message = "pid '{0}' is invalid"


class PrefOutOfRange(InvalidValueError):
    message = "pref '{0}' is out of bounds, must be between 1 and 100"


# ── Semantics ──────────────────────────────────────────────────────────────────

class SemanticError(VCardError):
    pass


class OnlyOnce(SemanticError):
    message = "property '{0}' may only appear once"


class NoFormattedName(SemanticError):
    message = "formatted name (FN) is required"


class NoSex(SemanticError):
    message = "gender value is missing sex"


class InvalidLabel(SemanticError):
    message = "parameter LABEL can only be applied to ADR but used on '{0}'"


class TypeParameter(SemanticError):
    """A parameter was given to a property that does not accept it.

    The first argument is the property name, the optional second the
    offending parameter (``TYPE`` when omitted).
    """

    message = "{1} parameter is not supported for property '{0}'"

    def describe(self) -> str:
        prop = self.args[0] if self.args else "?"
        param = self.args[1] if len(self.args) > 1 else "TYPE"
        return self.message.format(prop, param)


class MemberRequiresGroup(SemanticError):
    message = "member property is only allowed when the kind is group"


class ClientPidMapPidNotAllowed(SemanticError):
    message = "PID parameter not allowed for CLIENTPIDMAP"


class UnsupportedValueType(SemanticError):
    message = "value '{0}' is not supported in this context '{1}'"


# ── Delegated ──────────────────────────────────────────────────────────────────
#
# Raised with ``from exc`` so the collaborator's own exception stays reachable
# through ``__cause__``.

class DelegatedError(VCardError):
    pass


class UriParse(DelegatedError):
    message = "'{0}' is not a valid URI"


class LanguageParse(DelegatedError):
    message = "'{0}' is not a valid language tag"


class NumberParse(DelegatedError):
    message = "'{0}' is not a valid number"


class ComponentRange(DelegatedError):
    message = "'{0}' has a date or time component out of range"


class EncodingError(DelegatedError):
    message = "input is not valid UTF-8: {0}"
