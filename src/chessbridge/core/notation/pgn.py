"""PGN parsing and serialization helpers."""

from __future__ import annotations

import re

from chessbridge.core.notation.models import ParsedPgn
from chessbridge.errors import PgnError

_PGN_HEADER_RE = re.compile(r'^\[(\w+)\s+"((?:[^"\\]|\\.)*)"\]\s*$')
_PGN_TAG_RE = re.compile(r'\[(\w+)\s+"((?:[^"\\]|\\.)*)"\]')
_MOVE_NUMBER_RE = re.compile(r"^\d+\.(?:\.\.)?$")

PGN_RESULT_TOKENS = frozenset({"1-0", "0-1", "1/2-1/2", "*"})
SEVEN_TAG_ROSTER = ("Event", "Site", "Date", "Round", "White", "Black", "Result")
UCI_MOVES_TAG = "UCIMoves"
LINE_WIDTH = 80


def pgn_movetext_from_sans(
    sans: list[str],
    result_token: str,
    *,
    width: int = LINE_WIDTH,
) -> str:
    """Build numbered PGN movetext wrapped at *width* columns."""
    tokens: list[str] = []
    for ply, san in enumerate(sans):
        if ply % 2 == 0:
            tokens.append(f"{(ply // 2) + 1}. {san}")
        else:
            tokens.append(san)
    tokens.append(result_token)

    lines: list[str] = []
    current = ""
    for token in tokens:
        if current and len(current) + 1 + len(token) > width:
            lines.append(current)
            current = token
        else:
            current = f"{current} {token}" if current else token
    if current:
        lines.append(current)
    return "\n".join(lines)


def build_pgn(headers: dict[str, str], sans: list[str], result_token: str) -> str:
    """Build a single-game PGN document."""
    if result_token not in PGN_RESULT_TOKENS:
        raise PgnError(f"Invalid PGN result token: {result_token!r}")

    lines: list[str] = []
    for key, value in headers.items():
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        lines.append(f'[{key} "{escaped}"]')
    lines.append("")
    lines.append(pgn_movetext_from_sans(sans, result_token))
    lines.append("")
    return "\n".join(lines)


def parse_movetext(movetext: str) -> tuple[list[str], str]:
    """Extract mainline SAN tokens and the result token from movetext.

    Comments (``{...}`` and ``;``), variations, NAGs and move numbers are
    dropped.
    """
    sans: list[str] = []
    result_token = "*"
    variation_depth = 0
    idx = 0
    total = len(movetext)

    while idx < total:
        ch = movetext[idx]

        if ch.isspace():
            idx += 1
            continue

        if ch == "{":
            end = movetext.find("}", idx + 1)
            idx = total if end < 0 else end + 1
            continue

        if ch == ";":
            end = movetext.find("\n", idx + 1)
            idx = total if end < 0 else end
            continue

        if ch == "(":
            variation_depth += 1
            idx += 1
            continue

        if ch == ")":
            variation_depth = max(0, variation_depth - 1)
            idx += 1
            continue

        token_end = idx
        while (
            token_end < total
            and not movetext[token_end].isspace()
            and movetext[token_end] not in "{}();"
        ):
            token_end += 1
        token = movetext[idx:token_end]
        idx = token_end

        if not token or variation_depth > 0:
            continue

        if token in PGN_RESULT_TOKENS:
            result_token = token
            continue

        if _MOVE_NUMBER_RE.match(token):
            continue

        if token.startswith("$") and token[1:].isdigit():
            continue

        # "12.e4" style: number glued to the move
        token = re.sub(r"^\d+\.+", "", token)
        if not token or token == "...":
            continue

        sans.append(token)

    return sans, result_token


def parse_pgn_game(pgn_text: str) -> ParsedPgn:
    """Parse a single PGN game into headers, SAN mainline and result."""
    headers: dict[str, str] = {}
    move_lines: list[str] = []
    in_headers = True

    for raw_line in pgn_text.splitlines():
        line = raw_line.strip()
        if not line:
            if in_headers and not headers:
                continue
            in_headers = False
            continue

        if in_headers and line.startswith("["):
            match = _PGN_HEADER_RE.match(line)
            if match is None:
                raise PgnError(f"Invalid PGN header line: {line}")
            key, raw_value = match.groups()
            headers[key] = raw_value.replace('\\"', '"').replace("\\\\", "\\")
            continue

        in_headers = False
        if line.startswith("%"):
            continue
        move_lines.append(line)

    sans, result_token = parse_movetext("\n".join(move_lines))
    header_result = headers.get("Result")
    if result_token == "*" and header_result in PGN_RESULT_TOKENS:
        result_token = header_result

    uci_moves = headers.get(UCI_MOVES_TAG, "").split()
    return ParsedPgn(
        headers=headers,
        sans=sans,
        result_token=result_token,
        uci_moves=uci_moves,
    )


def is_valid_pgn(pgn_text: str) -> bool:
    """Loose sanity check: at least one well-formed tag pair."""
    return _PGN_TAG_RE.search(pgn_text) is not None
