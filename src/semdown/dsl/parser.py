"""Line-oriented parser for the entity markdown dialect."""

import re
from typing import List, Optional

from semdown.diagnostics import Diagnostic
from semdown.dsl.patterns import BulletContext, classify_bullet
from semdown.dsl.statements import EntityDeclaration, ParseResult, UnparsedBullet
from semdown.errors import DslSyntaxError
from semdown.utils.naming import name_key, normalize_name
from semdown.config.logging import get_logger

logger = get_logger(__name__)

# `**Name**: description`, `**Name:** description` or a bare `**Name**`
HEADER_RE = re.compile(
    r"^\*\*(?P<name>[^*:]+?)(?::\*\*|\*\*\s*:|\*\*\s*$)\s*(?P<description>.*)$"
)
BULLET_RE = re.compile(r"^\s*[-*+]\s+(?P<body>.*\S)\s*$")
BOLD_RE = re.compile(r"\*\*(?P<name>[^*]+?)\*\*")
FENCE = "```"


def _scan_headers(lines: List[str]) -> List[str]:
    """Collect declared entity names so bullets can tell entities from attributes."""
    names: List[str] = []
    seen = set()
    in_fence = False
    for raw in lines:
        stripped = raw.strip()
        if stripped.startswith(FENCE):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        m = HEADER_RE.match(stripped)
        if m:
            name = normalize_name(m.group("name"))
            if name_key(name) not in seen:
                seen.add(name_key(name))
                names.append(name)
    return names


def _clean_bullet(body: str):
    """Strip bold markers and the trailing period; return (clean text, bold name keys)."""
    bold = {name_key(m.group("name")) for m in BOLD_RE.finditer(body)}
    clean = BOLD_RE.sub(lambda m: m.group("name"), body)
    clean = normalize_name(clean).rstrip(".;").strip()
    return clean, bold


def _looks_like_fact(line: str, lineno: int, owner: str, known: List[str]) -> bool:
    """True when a non-bullet line would parse as a fact about a declared entity."""
    body, bold = _clean_bullet(line)
    node = classify_bullet(
        BulletContext(line=lineno, text=body, owner=owner, known=known, bold=bold), body
    )
    if node is None:
        return False
    return name_key(node.entity) in {name_key(k) for k in known}


def parse_text(text: str) -> ParseResult:
    """
    Parse model text into an ordered sequence of statement nodes.

    Args:
        text: Model text (bold entity headers followed by bullet facts)

    Returns:
        ParseResult with statements, unparsed bullets and parse warnings

    Raises:
        DslSyntaxError: If a bullet appears before any entity header
    """
    lines = text.splitlines()
    known = _scan_headers(lines)
    result = ParseResult(entity_names=known)

    owner: Optional[str] = None
    current: Optional[EntityDeclaration] = None
    collecting_description = False
    in_fence = False

    for lineno, raw in enumerate(lines, 1):
        stripped = raw.strip()
        if stripped.startswith(FENCE):
            in_fence = not in_fence
            continue
        if in_fence or not stripped:
            continue

        header = HEADER_RE.match(stripped)
        if header:
            owner = normalize_name(header.group("name"))
            current = EntityDeclaration(
                line=lineno,
                text=stripped,
                owner=owner,
                name=owner,
                description=header.group("description").strip(),
            )
            result.statements.append(current)
            collecting_description = True
            continue

        bullet = BULLET_RE.match(raw)
        if bullet:
            collecting_description = False
            if owner is None:
                raise DslSyntaxError(
                    "bullet has no owning entity header above it",
                    line=lineno,
                    diagnostics=result.diagnostics,
                )
            body, bold = _clean_bullet(bullet.group("body"))
            ctx = BulletContext(
                line=lineno, text=body, owner=owner, known=known, bold=bold
            )
            node = classify_bullet(ctx, body)
            if node is None:
                result.unparsed.append(UnparsedBullet(line=lineno, text=body, owner=owner))
                result.diagnostics.append(
                    Diagnostic(
                        code="ParseWarning",
                        message=f"Unrecognized fact under '{owner}': {body}",
                        line=lineno,
                        details={"owner": owner, "text": body},
                    )
                )
                logger.warning(f"line {lineno}: unrecognized fact ignored: {body}")
            else:
                result.statements.append(node)
            continue

        if stripped.startswith("#"):
            collecting_description = False
            continue

        if collecting_description and current is not None:
            current.description = " ".join(
                part for part in (current.description, stripped) if part
            )
        elif owner is not None and _looks_like_fact(stripped, lineno, owner, known):
            result.unparsed.append(UnparsedBullet(line=lineno, text=stripped, owner=owner))
            result.diagnostics.append(
                Diagnostic(
                    code="ParseWarning",
                    message=f"Fact under '{owner}' is missing its bullet: {stripped}",
                    line=lineno,
                    details={"owner": owner, "text": stripped},
                )
            )
            logger.warning(f"line {lineno}: unbulleted fact ignored: {stripped}")
        else:
            logger.debug(f"line {lineno}: prose ignored")

    logger.info(
        f"Parsed {len(result.statements)} statements "
        f"({len(known)} entities, {len(result.unparsed)} unparsed bullets)"
    )
    return result
