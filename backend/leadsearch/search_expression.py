# backend/leadsearch/search_expression.py
import logging
import re
from typing import List, Optional, Tuple

log = logging.getLogger(__name__)


def _unquote(s: str) -> str:
    s = s.strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        return s[1:-1]
    return s


class CommandUnit:
    """A ``command:argument`` token; a leading ``!`` negates it."""

    _PATTERN = re.compile(r"^(?P<neg>!)?(?P<cmd>[^\s:\"']+):(?P<arg>.*)$", re.DOTALL)

    def __init__(self, token: str):
        self.raw = token
        self.negated = False
        self.command: Optional[str] = None
        self.string: str = ""
        self._parse_error = False
        m = self._PATTERN.match(token.strip())
        if not m:
            self._parse_error = True
            log.debug("CommandUnit parse failed for token %r", token)
            return
        self.negated = bool(m.group("neg"))
        self.command = m.group("cmd").strip()
        self.string = _unquote(m.group("arg"))

    @classmethod
    def looks_like_command(cls, token: str) -> bool:
        return bool(cls._PATTERN.match(token.strip()))

    def ensure_valid(self) -> bool:
        return not self._parse_error and bool(self.command)

    def __repr__(self) -> str:
        return f"CommandUnit(command={self.command!r}, string={self.string!r}, negated={self.negated!r})"


class TextUnit:
    """A free-text term or quoted phrase."""

    def __init__(self, token: str):
        self.raw = token
        self.negated = token.startswith("!") and len(token) > 1
        self.string = _unquote(token[1:] if self.negated else token)

    def __repr__(self) -> str:
        return f"TextUnit(string={self.string!r}, negated={self.negated!r})"


class SearchQuery:
    """
    Split a lead search string into command units and free-text units.

    - whitespace separates units; double-quoted phrases stay whole,
      also as a command argument: ``name:"Jane Doe"``
    - ``command:argument`` becomes a :class:`CommandUnit`
    - everything else becomes a :class:`TextUnit`
    """

    _TOKEN = re.compile(r'!?[^\s:"]+:"[^"]*"|!?"[^"]*"|\S+')

    def __init__(self, s: Optional[str]):
        self.raw: str = s or ""
        self.commands: List[CommandUnit] = []
        self.terms: List[TextUnit] = []
        self.commands, self.terms = self._parse(self.raw)

    @classmethod
    def tokenize(cls, s: str) -> List[str]:
        return cls._TOKEN.findall(s or "")

    def _parse(self, s: str) -> Tuple[List[CommandUnit], List[TextUnit]]:
        commands: List[CommandUnit] = []
        terms: List[TextUnit] = []
        for tok in self.tokenize(s):
            if CommandUnit.looks_like_command(tok):
                unit = CommandUnit(tok)
                if unit.ensure_valid():
                    commands.append(unit)
                    continue
            terms.append(TextUnit(tok))
        return commands, terms

    def has_command(self, command: str, string: Optional[str] = None) -> bool:
        """True when a unit with ``command`` (and ``string``, if given) is present, ignoring case."""
        key = (command or "").strip().casefold()
        for unit in self.commands:
            if (unit.command or "").casefold() != key:
                continue
            if string is None or unit.string.casefold() == string.strip().casefold():
                return True
        return False

    @property
    def text(self) -> str:
        return " ".join(t.string for t in self.terms)

    def __repr__(self) -> str:
        return f"SearchQuery(commands={self.commands!r}, terms={self.terms!r})"
