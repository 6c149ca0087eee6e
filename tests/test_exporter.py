"""Tests for deck export."""

import zipfile

import fitz
import pandas as pd

from vocabpro.deck import DeckExporter, default_output_path
from vocabpro.models import EnrichedCard
from vocabpro.services.repository import CARD_COLUMNS


def cards_df():
    rows = [
        EnrichedCard(owner="u1", front="apple", back="olma\n\n(a fruit)", batch_id="Unit 1",
                     language="en", ipa="/ˈæp.əl/", example="An apple a day.",
                     audio="https://x/apple-us.mp3").to_row(),
        EnrichedCard(owner="u1", front="pear", back="nok", batch_id="Unit 1", language="en").to_row(),
        EnrichedCard(owner="u1", front="", back="empty", batch_id="Unit 1", language="en").to_row(),
    ]
    return pd.DataFrame(rows, columns=CARD_COLUMNS)


def test_export_writes_apkg(tmp_path):
    events = []
    out = tmp_path / "deck.apkg"

    written = DeckExporter(progress_callback=events.append).export(cards_df(), str(out), "Unit 1")

    assert written == 2
    assert zipfile.is_zipfile(out)
    assert "Exported 2 cards" in events[-1]["message"]


def test_export_backs_up_existing_file(tmp_path):
    out = tmp_path / "deck.apkg"
    exporter = DeckExporter()

    exporter.export(cards_df(), str(out), "Unit 1")
    exporter.export(cards_df(), str(out), "Unit 1")

    assert len(list(tmp_path.glob("deck_*.apkg"))) == 1


def test_note_guid_is_stable_per_word():
    exporter = DeckExporter()
    row = cards_df().to_dict(orient="records")[0]

    first = exporter._note(row)
    second = exporter._note(dict(row, back="changed"))

    assert first.guid == second.guid
    assert first.fields[2] == "olma<br><br>(a fruit)"
    assert "apple-us.mp3" in first.fields[4]


def test_stable_ids_do_not_depend_on_process():
    assert DeckExporter.stable_id("deck:Unit 1") == DeckExporter.stable_id("deck:Unit 1")
    assert 0 < DeckExporter.stable_id("x") < 2 ** 31


def test_export_csv(tmp_path):
    path = tmp_path / "out" / "cards.csv"

    DeckExporter.export_csv(cards_df(), str(path))

    df = pd.read_csv(path, sep="|", encoding="utf-8-sig")
    assert list(df.columns) == CARD_COLUMNS
    assert len(df) == 3


def test_default_output_path():
    assert default_output_path("Unit 1 (2024-05-01)").endswith("Unit_1__2024-05-01.apkg")


def sheet_df(count):
    rows = [
        EnrichedCard(owner="u1", front=f"word{i}", back=f"tr{i}\n\n(meaning {i})", batch_id="Unit 1",
                     language="en", ipa=f"/w{i}/", definition=f"meaning {i}", example=f"Use word{i}.").to_row()
        for i in range(count)
    ]
    return pd.DataFrame(rows, columns=CARD_COLUMNS)


def test_export_pdf_lays_out_front_and_back_pages(tmp_path):
    events = []
    out = tmp_path / "print" / "cards.pdf"

    written = DeckExporter(progress_callback=events.append).export_pdf(sheet_df(14), str(out))

    assert written == 14
    assert "Printed 14 cards on 4 pages" in events[-1]["message"]
    with fitz.open(str(out)) as doc:
        assert doc.page_count == 4
        front, back, second_front = doc[0].get_text(), doc[1].get_text(), doc[2].get_text()
        assert "word0" in front and "1-1" in front
        assert "word11" in front and "word12" not in front
        assert "tr0" in back and "meaning 0" in back and "Use word0." in back
        assert "1-1 (Back)" in back
        assert "word12" in second_front and "2-1" in second_front


def test_export_pdf_mirrors_back_columns(tmp_path):
    out = tmp_path / "cards.pdf"

    DeckExporter().export_pdf(sheet_df(3), str(out))

    with fitz.open(str(out)) as doc:
        cell_width = doc[0].rect.width / 3
        front_label = doc[0].search_for("1-1")[0]
        back_label = doc[1].search_for("1-1 (Back)")[0]
        assert front_label.x0 < cell_width
        assert back_label.x0 > 2 * cell_width


def test_export_pdf_without_cards_writes_nothing(tmp_path):
    out = tmp_path / "cards.pdf"

    assert DeckExporter().export_pdf(sheet_df(0), str(out)) == 0
    assert not out.exists()
