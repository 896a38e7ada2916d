"""Document assembly, pretty printing and Shift_JIS transcoding.

The receiving filing software diffs layout as well as content, so the
document is rendered by a small fixed printer instead of
``ElementTree.tostring``: two spaces per nesting level, ``<TAG/>`` for empty
elements, ``<TAG>text</TAG>`` on one line for leaves.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from .config import ENCODING_POLICIES, EncodingPolicy
from .errors import ContractViolation, EncodingError, UnencodableChar
from .logging_setup import get_logger
from .normalizers import escape_markup

_logger = get_logger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="Shift_JIS"?>'

# Python codec for the Shift_JIS repertoire the filing software accepts
# (Windows-31J, which adds NEC/IBM extensions such as ① and ㈱).
TARGET_CODEC = "cp932"

XML_HEAD: dict[str, str] = {
    "VERSION": "20081001",
    "APP": "収支報告書作成ソフト (収支報告書作成ソフト)",
    "FILE_FORMAT_NO": "1",
    "KOKUJI_APP_FLG": "0",
    "CHOUBO_APP_VER": "20081001",
}

KNOWN_FORM_IDS: tuple[str, ...] = (
    "SYUUSHI07_01",  # 団体の基本情報
    "SYUUSHI07_02",  # 収支の総括表
    "SYUUSHI07_03",  # 事業による収入
    "SYUUSHI07_04",  # 借入金
    "SYUUSHI07_05",  # 本部又は支部から供与された交付金
    "SYUUSHI07_06",  # その他の収入
    "SYUUSHI07_07",  # 寄附の明細
    "SYUUSHI07_08",  # 寄附のあっせん
    "SYUUSHI07_09",  # 政党匿名寄附
    "SYUUSHI07_10",  # 政治資金パーティーの対価に係る収入
    "SYUUSHI07_11",  # パーティー対価の支払をした者
    "SYUUSHI07_12",  # パーティー対価の支払のあっせんをした者
    "SYUUSHI07_13",  # 支出項目別金額の内訳
    "SYUUSHI07_14",  # 経常経費の支出
    "SYUUSHI07_15",  # 政治活動費の支出
    "SYUUSHI07_16",  # 本部又は支部に対する交付金の支出
    "SYUUSHI07_17",  # 資産等の項目別内訳の有無
    "SYUUSHI07_18",  # 資産等の項目別内訳の明細
    "SYUUSHI07_19",  # 不動産の利用の状況
    "SYUUSHI07_20",  # 宣誓書
    "SYUUSHI08",  # 訂正等届出書
    "SYUUSHI08_02",  # 解散届出書
    "SYUUSHI_KIFUKOUJYO",  # 寄附金控除関連
)

_INDENT = "  "


@dataclass(frozen=True, slots=True)
class DocumentHead:
    """Fixed header fields plus the 51-character presence flag."""

    presence_flag: str
    fields: Mapping[str, str] = field(default_factory=lambda: dict(XML_HEAD))


def _check_form_id(form_id: str) -> None:
    if form_id not in KNOWN_FORM_IDS:
        raise ContractViolation(f"unknown form id {form_id!r}")


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _render(el: ET.Element, depth: int, out: list[str]) -> None:
    pad = _INDENT * depth
    children = list(el)
    if children:
        out.append(f"{pad}<{el.tag}>")
        for child in children:
            _render(child, depth + 1, out)
        out.append(f"{pad}</{el.tag}>")
    elif el.text:
        out.append(f"{pad}<{el.tag}>{escape_markup(el.text)}</{el.tag}>")
    else:
        out.append(f"{pad}<{el.tag}/>")


def render_element(el: ET.Element, depth: int = 0) -> str:
    """Render one element (and its subtree) with the document's layout."""

    lines: list[str] = []
    _render(el, depth, lines)
    return "\n".join(lines) + "\n"


def build_document(
    head: DocumentHead,
    sections: Sequence[ET.Element],
    available_form_ids: Iterable[str] | None = None,
) -> str:
    """Wrap ``sections`` with the header and flag blocks and render the document.

    ``sections`` are emitted in the given order. When ``available_form_ids``
    is given, fragments whose form id is not in it are left out. Any form id
    outside :data:`KNOWN_FORM_IDS` raises ``ContractViolation``.
    """

    allowed: set[str] | None = None
    if available_form_ids is not None:
        allowed = set(available_form_ids)
        for form_id in allowed:
            _check_form_id(form_id)
    for section in sections:
        _check_form_id(section.tag)

    book = ET.Element("BOOK")
    head_el = ET.SubElement(book, "HEAD")
    for tag, value in head.fields.items():
        ET.SubElement(head_el, tag).text = value
    flag_el = ET.SubElement(book, "SYUUSHI_UMU_FLG")
    ET.SubElement(flag_el, "SYUUSHI_UMU").text = head.presence_flag
    for section in sections:
        if allowed is None or section.tag in allowed:
            book.append(section)

    return f"{XML_DECLARATION}\n{render_element(book)}"


# ---------------------------------------------------------------------------
# Transcoding
# ---------------------------------------------------------------------------


def find_unencodable(text: str, codec: str = TARGET_CODEC) -> list[UnencodableChar]:
    """Return every character of ``text`` with no mapping in ``codec``."""

    problems: list[UnencodableChar] = []
    for line_no, line in enumerate(text.split("\n"), start=1):
        for col, ch in enumerate(line, start=1):
            if ch.isascii():
                continue
            try:
                ch.encode(codec)
            except UnicodeEncodeError:
                problems.append(UnencodableChar(ch, line_no, col))
    return problems


def encode_document(text: str, policy: EncodingPolicy = "strict") -> bytes:
    """Transcode the rendered document to Shift_JIS bytes.

    ``"strict"`` raises :class:`EncodingError` listing every offending
    character. ``"replace"`` writes ``?`` for each of them and logs a
    warning with the count.
    """

    if policy not in ENCODING_POLICIES:
        raise ValueError(f"unknown encoding policy {policy!r}")
    try:
        return text.encode(TARGET_CODEC)
    except UnicodeEncodeError as e:
        problems = find_unencodable(text)
        if policy == "strict":
            raise EncodingError("Shift_JIS", problems) from e
        _logger.warning(
            "encode_document:replaced count=%d first=%s",
            len(problems),
            problems[0].codepoint if problems else "-",
        )
        return text.encode(TARGET_CODEC, errors="replace")


__all__ = [
    "DocumentHead",
    "KNOWN_FORM_IDS",
    "TARGET_CODEC",
    "XML_DECLARATION",
    "XML_HEAD",
    "build_document",
    "encode_document",
    "find_unencodable",
    "render_element",
]
