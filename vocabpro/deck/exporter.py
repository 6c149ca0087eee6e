"""Export stored card batches as Anki packages, printable PDF sheets or CSV."""

import hashlib
import html
import os
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

import fitz  # PyMuPDF
import genanki
import pandas as pd

from ..config import Config
from ..utils.helpers import ensure_dir
from ..utils.parsing import TextParser

CARD_CSS = """
.card { font-family: arial; font-size: 22px; text-align: center; color: #222; background: #fff; }
.ipa { color: #666; font-size: 18px; }
.back { white-space: pre-line; }
.example { color: #444; font-style: italic; font-size: 18px; }
"""

FRONT_TEMPLATE = '{{Front}}<div class="ipa">{{IPA}}</div>'
BACK_TEMPLATE = (
    '{{FrontSide}}<hr id="answer">'
    '<div class="back">{{Back}}</div>'
    '<div class="example">{{Example}}</div>'
    '{{Audio}}'
)


class DeckExporter:
    """Build ``.apkg`` files and printable card sheets from a DataFrame of flashcard rows."""

    MODEL_NAME = "VocabPro Basic"

    # Print sheet: A4 portrait, 3 x 4 cards, the back page mirrored for duplex
    SHEET_COLS = 3
    SHEET_ROWS = 4
    GUIDE_COLOR = (0.78, 0.78, 0.78)
    LABEL_COLOR = (0.7, 0.7, 0.7)

    FRONT_CSS = (
        "* {font-family: sans-serif; text-align: center;}"
        " .word {font-size: 22px; font-weight: bold;}"
        " .ipa {font-size: 10px; font-style: italic; color: #646464;}"
    )
    BACK_CSS = (
        "* {font-family: sans-serif; text-align: center;}"
        " .title {font-size: 14px; font-weight: bold;}"
        " .body {font-size: 9px; color: #323232;}"
        " .example {font-size: 8px; font-style: italic; color: #646464;}"
    )

    def __init__(self, progress_callback: Optional[Callable[[Dict[str, Any]], None]] = None):
        self.progress_callback = progress_callback or (lambda payload: None)
        self.model = genanki.Model(
            self.stable_id(self.MODEL_NAME),
            self.MODEL_NAME,
            fields=[
                {'name': 'Front'}, {'name': 'IPA'}, {'name': 'Back'},
                {'name': 'Example'}, {'name': 'Audio'},
            ],
            templates=[{'name': 'Card 1', 'qfmt': FRONT_TEMPLATE, 'afmt': BACK_TEMPLATE}],
            css=CARD_CSS,
        )

    @staticmethod
    def stable_id(text: str) -> int:
        """Deterministic 31-bit id (Python's hash() varies between sessions)."""
        return int(hashlib.md5(text.encode("utf-8")).hexdigest()[:8], 16) & 0x7FFFFFFF

    @staticmethod
    def _value(row: Dict[str, Any], field: str) -> str:
        value = row.get(field, "")
        if value is None or (isinstance(value, float) and pd.isna(value)):
            return ""
        return str(value)

    def _note(self, row: Dict[str, Any]) -> genanki.Note:
        front = self._value(row, "front")
        audio = self._value(row, "audio")
        audio_html = f'<audio controls src="{html.escape(audio)}"></audio>' if audio else ""

        return genanki.Note(
            model=self.model,
            fields=[
                html.escape(front),
                html.escape(self._value(row, "ipa")),
                html.escape(self._value(row, "back")).replace("\n", "<br>"),
                html.escape(self._value(row, "example")),
                audio_html,
            ],
            guid=genanki.guid_for(
                self._value(row, "user_id"),
                self._value(row, "batch_id"),
                TextParser.normalize_key(front),
            ),
            tags=[self._value(row, "category")] if self._value(row, "category") else [],
        )

    def export(self, cards_df: pd.DataFrame, output_file: str, deck_name: str) -> int:
        """
        Write an Anki package.

        Returns:
            Number of notes written
        """
        deck = genanki.Deck(self.stable_id(f"deck:{deck_name}"), deck_name)
        for row in cards_df.to_dict(orient="records"):
            if not self._value(row, "front"):
                continue
            deck.add_note(self._note(row))

        ensure_dir(os.path.dirname(os.path.abspath(output_file)))
        if os.path.exists(output_file):
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            backup_file = output_file.replace(".apkg", f"_{timestamp}.apkg")
            os.rename(output_file, backup_file)
            self.progress_callback({"event": "log", "message": f"[*] Backup created: {backup_file}", "value": 0})

        genanki.Package(deck).write_to_file(output_file)
        self.progress_callback({
            "event": "log",
            "message": f"📦 Exported {len(deck.notes)} cards to {output_file}",
            "value": 100,
        })
        return len(deck.notes)

    @classmethod
    def _back_parts(cls, row: Dict[str, Any]) -> Tuple[str, str, str]:
        """Translation, definition and example for the back of a printed card."""
        translation = cls._value(row, "back").partition("\n\n")[0].strip()
        definition = cls._value(row, "definition").strip()
        if definition == translation:
            definition = ""
        return translation, definition, cls._value(row, "example").strip()

    def _draw_cell(self, page: fitz.Page, rect: fitz.Rect, label: str, body_html: str, css: str) -> None:
        page.draw_rect(rect, color=self.GUIDE_COLOR, width=0.3, dashes="[2 2] 0")
        page.insert_text(
            (rect.x0 + 8.5, rect.y0 + 11.3), label, fontsize=6, fontname="helv", color=self.LABEL_COLOR
        )
        # 12pt side padding, text is shrunk until it fits the cell
        page.insert_htmlbox(rect + (12, 18, -12, -12), body_html, css=css)

    def export_pdf(self, cards_df: pd.DataFrame, output_file: str) -> int:
        """
        Write a print-ready A4 sheet set.

        Each sheet holds twelve cards: a front page (word, IPA) followed by a
        back page (translation, definition, example) whose columns are
        mirrored so the sides line up when printed double-sided. Cells carry
        ``sheet-index`` labels, with ``(Back)`` on the reverse.

        Returns:
            Number of cards written
        """
        rows = [row for row in cards_df.to_dict(orient="records") if self._value(row, "front")]
        if not rows:
            self.progress_callback({"event": "log", "message": "[!] No cards to print", "value": 0})
            return 0

        per_sheet = self.SHEET_COLS * self.SHEET_ROWS
        paper = fitz.paper_rect("a4")
        cell_w = paper.width / self.SHEET_COLS
        cell_h = paper.height / self.SHEET_ROWS

        def cell(col: int, row: int) -> fitz.Rect:
            return fitz.Rect(col * cell_w, row * cell_h, (col + 1) * cell_w, (row + 1) * cell_h)

        doc = fitz.open()
        try:
            for sheet, start in enumerate(range(0, len(rows), per_sheet), start=1):
                cards = rows[start:start + per_sheet]

                front = doc.new_page(width=paper.width, height=paper.height)
                for i, row in enumerate(cards):
                    ipa = self._value(row, "ipa")
                    self._draw_cell(
                        front, cell(i % self.SHEET_COLS, i // self.SHEET_COLS), f"{sheet}-{i + 1}",
                        f'<p class="word">{html.escape(self._value(row, "front"))}</p>'
                        + (f'<p class="ipa">{html.escape(ipa)}</p>' if ipa else ""),
                        self.FRONT_CSS,
                    )

                back = doc.new_page(width=paper.width, height=paper.height)
                for i, row in enumerate(cards):
                    translation, definition, example = self._back_parts(row)
                    mirrored = self.SHEET_COLS - 1 - i % self.SHEET_COLS
                    self._draw_cell(
                        back, cell(mirrored, i // self.SHEET_COLS), f"{sheet}-{i + 1} (Back)",
                        f'<p class="title">{html.escape(translation)}</p>'
                        + (f'<p class="body">{html.escape(definition)}</p>' if definition else "")
                        + (f'<p class="example">"{html.escape(example)}"</p>' if example else ""),
                        self.BACK_CSS,
                    )

            pages = doc.page_count
            ensure_dir(os.path.dirname(os.path.abspath(output_file)))
            doc.save(output_file, garbage=3, deflate=True)
        finally:
            doc.close()

        self.progress_callback({
            "event": "log",
            "message": f"🖨️ Printed {len(rows)} cards on {pages} pages to {output_file}",
            "value": 100,
        })
        return len(rows)

    @staticmethod
    def export_csv(cards_df: pd.DataFrame, path: str) -> None:
        """Write a pipe-separated CSV (same dialect the workbench files use)."""
        ensure_dir(os.path.dirname(os.path.abspath(path)))
        cards_df.to_csv(path, sep='|', index=False, encoding='utf-8-sig')


def default_output_path(batch_id: str) -> str:
    """Output file for a batch inside Config.OUTPUT_DIR."""
    safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in batch_id).strip("_") or "deck"
    return os.path.join(Config.OUTPUT_DIR, f"{safe}.apkg")
