from __future__ import annotations

import pytest

from app import development_content
from app.development import AGE_STAGES
from app.development_content import (
    ContentUnavailableError,
    DevelopmentalContentRow,
    DevelopmentalMilestone,
    DevelopmentContent,
    language_code,
    load_development_content,
    parse_content_rows,
)


@pytest.fixture(autouse=True)
def clear_content_cache():
    load_development_content.cache_clear()
    yield
    load_development_content.cache_clear()


def test_parse_pairs_images_and_skips_placeholders() -> None:
    text = (
        "Age/Timeframe,Physical,Physical Images,Language\n"
        "Week 1,Lifts head briefly,/img/week-1.png,Cries to signal hunger\n"
        "Week 2,-,N/A,Coos\n"
        "Week 3,N/A,,-\n"
        ",Orphaned description,,Text\n"
    )
    rows = parse_content_rows(text)

    assert [row.stage for row in rows] == ["Week 1", "Week 2"]
    assert rows[0].milestones == (
        DevelopmentalMilestone("Physical", "Lifts head briefly", "/img/week-1.png"),
        DevelopmentalMilestone("Language", "Cries to signal hunger", None),
    )
    assert rows[1].milestones == (DevelopmentalMilestone("Language", "Coos", None),)


def test_parse_keeps_quoted_commas() -> None:
    text = 'Age/Timeframe,Physical\n"Week 1","Sleeps, feeds, repeats"\n'
    rows = parse_content_rows(text)
    assert rows[0].milestones[0].description == "Sleeps, feeds, repeats"


@pytest.mark.parametrize("delimiter", ["\t", "|", ";"])
def test_parse_sniffs_delimiter(delimiter: str) -> None:
    text = delimiter.join(["Age/Timeframe", "Social"]) + "\n" + delimiter.join(["1 Year", "Waves bye-bye, claps"]) + "\n"
    rows = parse_content_rows(text)
    assert len(rows) == 1
    assert rows[0].stage == "1 Year"
    assert rows[0].milestones[0].description == "Waves bye-bye, claps"


def test_content_snapshot_lookup() -> None:
    rows = [
        DevelopmentalContentRow("6 Months", (DevelopmentalMilestone("Physical", "Sits"),)),
        DevelopmentalContentRow("7-12 Months", (DevelopmentalMilestone("Physical", "Crawls"),)),
        DevelopmentalContentRow("6 Months", (DevelopmentalMilestone("Physical", "Duplicate"),)),
    ]
    content = DevelopmentContent(rows)

    assert content.stages == frozenset({"6 Months", "7-12 Months"})
    assert len(content) == 2
    assert content.get("6 Months").milestones[0].description == "Sits"
    assert content.get("1 Year") is None
    assert [row.stage for row in content.rows_for(["7-12 Months", "1 Year", "6 Months"])] == [
        "7-12 Months",
        "6 Months",
    ]


def test_language_codes() -> None:
    assert language_code(None) == "en"
    assert language_code("English") == "en"
    assert language_code("Hindi") == "hi"
    assert language_code("Tamil") == "ta"


def test_bundled_table_covers_every_stage() -> None:
    content = load_development_content()
    assert content.language == "en"
    assert content.stages == frozenset(AGE_STAGES)
    row = content.get("7-12 Months")
    language = [item for item in row.milestones if item.category == "Language"][0]
    assert '"mama"' in language.description


def test_missing_language_falls_back_to_english(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "milestones_en.csv").write_text("Age/Timeframe,Physical\nWeek 1,Lifts head\n")
    monkeypatch.setattr(development_content.CONFIG, "content_dir", str(tmp_path))

    content = load_development_content("hi")
    assert content.language == "en"
    assert content.stages == frozenset({"Week 1"})


def test_language_specific_table_is_used(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "milestones_en.csv").write_text("Age/Timeframe,Physical\nWeek 1,Lifts head\n")
    (tmp_path / "milestones_hi.csv").write_text("Age/Timeframe,Physical\nWeek 2,Sir uthata hai\n")
    monkeypatch.setattr(development_content.CONFIG, "content_dir", str(tmp_path))

    content = load_development_content("hi")
    assert content.language == "hi"
    assert content.stages == frozenset({"Week 2"})


def test_missing_table_raises(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(development_content.CONFIG, "content_dir", str(tmp_path))
    with pytest.raises(ContentUnavailableError):
        load_development_content()
