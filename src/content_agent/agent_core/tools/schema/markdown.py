"""Markdown helpers: rich-text document conversion and light text extraction."""

import re
from typing import Any, Dict, List, Optional

from markdown_it import MarkdownIt
from markdown_it.token import Token

_md = MarkdownIt("commonmark")

_INLINE_PATTERNS = (
    (re.compile(r"\*\*(.+?)\*\*"), r"\1"),
    (re.compile(r"\*(.+?)\*"), r"\1"),
    (re.compile(r"`(.+?)`"), r"\1"),
    (re.compile(r"\[(.+?)\]\(.+?\)"), r"\1"),
)


def markdown_to_document(markdown: str, skip_first_h1: bool = False) -> Dict[str, Any]:
    """Convert markdown into a rich-text document tree.

    The document has a single ``root`` node whose children are block nodes
    (``heading``, ``paragraph``, ``list``, ``quote``, ``code``) holding ``text`` leaves.

    Args:
        markdown: Markdown source.
        skip_first_h1: Drop the first level-one heading (it usually duplicates the title).

    Returns:
        The document as a JSON-serializable dict.
    """
    tokens = _md.parse(markdown or "")
    children: List[Dict[str, Any]] = []
    stack: List[Dict[str, Any]] = []
    skipping = False
    skipped_h1 = False

    for token in tokens:
        if token.type == "heading_open" and skip_first_h1 and token.tag == "h1" and not skipped_h1:
            skipping = True
            skipped_h1 = True
            continue
        if skipping:
            if token.type == "heading_close":
                skipping = False
            continue

        if token.type in ("paragraph_open", "paragraph_close") and token.hidden:
            continue

        node = _open_node(token)
        if node is not None:
            (stack[-1]["children"] if stack else children).append(node)
            stack.append(node)
        elif token.type.endswith("_close"):
            if stack:
                stack.pop()
        elif token.type == "inline" and stack:
            stack[-1]["children"].extend(_inline_nodes(token))
        elif token.type in ("fence", "code_block"):
            code = {"type": "code", "language": token.info.strip() or None, "children": [_text(token.content.rstrip("\n"))]}
            (stack[-1]["children"] if stack else children).append(code)

    return {"root": {"type": "root", "direction": "ltr", "children": children}}


def _open_node(token: Token) -> Optional[Dict[str, Any]]:
    if token.type == "heading_open":
        return {"type": "heading", "tag": token.tag, "children": []}
    if token.type == "paragraph_open":
        return {"type": "paragraph", "children": []}
    if token.type == "bullet_list_open":
        return {"type": "list", "listType": "bullet", "children": []}
    if token.type == "ordered_list_open":
        return {"type": "list", "listType": "number", "children": []}
    if token.type == "list_item_open":
        return {"type": "listitem", "children": []}
    if token.type == "blockquote_open":
        return {"type": "quote", "children": []}
    return None


def _inline_nodes(token: Token) -> List[Dict[str, Any]]:
    nodes: List[Dict[str, Any]] = []
    formats: List[str] = []
    link: Optional[str] = None
    for child in token.children or []:
        if child.type in ("strong_open", "em_open"):
            formats.append("bold" if child.type == "strong_open" else "italic")
        elif child.type in ("strong_close", "em_close"):
            if formats:
                formats.pop()
        elif child.type == "link_open":
            link = str(child.attrs.get("href", ""))
        elif child.type == "link_close":
            link = None
        elif child.type in ("text", "code_inline"):
            node = _text(child.content, formats + (["code"] if child.type == "code_inline" else []))
            if link:
                node = {"type": "link", "url": link, "children": [node]}
            nodes.append(node)
        elif child.type in ("softbreak", "hardbreak"):
            nodes.append({"type": "linebreak"})
    return nodes


def _text(content: str, formats: Optional[List[str]] = None) -> Dict[str, Any]:
    node: Dict[str, Any] = {"type": "text", "text": content}
    if formats:
        node["format"] = sorted(set(formats))
    return node


def strip_inline(text: str) -> str:
    """Strip bold, italic, code and link markup from a single line."""
    out = text or ""
    for pattern, repl in _INLINE_PATTERNS:
        out = pattern.sub(repl, out)
    return out.strip()


def extract_h1(markdown: str) -> Optional[str]:
    """Return the text of the first level-one heading, if any."""
    match = re.search(r"^\s*#\s+(.+?)\s*$", markdown or "", re.MULTILINE)
    return strip_inline(match.group(1)) if match else None


def extract_paragraphs(markdown: str, limit: int = 5, min_length: int = 20) -> List[str]:
    """Return up to ``limit`` plain paragraphs, skipping headings, lists and code."""
    paragraphs: List[str] = []
    for block in re.split(r"\n\s*\n+", markdown or ""):
        block = block.strip()
        if not block:
            continue
        if re.match(r"^#{1,6}\s+", block) or block.startswith("```"):
            continue
        if re.match(r"^[-*]\s+", block) or re.match(r"^\d+\.\s+", block):
            continue
        line = strip_inline(re.sub(r"\s+", " ", block))
        if len(line) >= min_length:
            paragraphs.append(line)
        if len(paragraphs) >= limit:
            break
    return paragraphs
