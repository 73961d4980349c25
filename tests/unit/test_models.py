"""Tests for core models."""

from datetime import datetime, timezone

from notices_scraper.core.models import (
    MISSING_FIELD_PLACEHOLDER,
    AnnouncementRecord,
    DailySnapshot,
    DetailFields,
    ListingItem,
)


def make_record(record_id: str = "bizinfo_PBLN_1", **kwargs) -> AnnouncementRecord:
    defaults = dict(
        id=record_id,
        source_id="bizinfo",
        title="[서울] 2026년 청년 창업 지원사업",
        url="https://www.bizinfo.go.kr/x.do?pblancId=PBLN_1",
        date="2026-03-31",
        raw_date="2026-03-01 ~ 2026-03-31",
        region="서울",
        region_category="수도권",
        category="사업화",
        is_target=True,
        is_new=True,
        collected_at=datetime(2026, 3, 2, tzinfo=timezone.utc),
    )
    defaults.update(kwargs)
    return AnnouncementRecord(**defaults)


class TestDetailFields:
    """Tests for DetailFields dataclass."""

    def test_to_dict_drops_empty(self):
        """Test to_dict only keeps resolved fields."""
        fields = DetailFields(eligibility="청년", period="")
        assert fields.to_dict() == {"eligibility": "청년"}

    def test_from_dict_round_values(self):
        fields = DetailFields.from_dict({"amount": "최대 1억원", "unknown": "x"})
        assert fields.amount == "최대 1억원"
        assert fields.eligibility is None

    def test_from_none(self):
        assert DetailFields.from_dict(None).is_empty()

    def test_placeholders(self):
        """Test unresolved fields surface as the placeholder, never a guess."""
        result = DetailFields(content="사업 개요").with_placeholders()

        assert result["content"] == "사업 개요"
        assert result["eligibility"] == MISSING_FIELD_PLACEHOLDER
        assert result["period"] == MISSING_FIELD_PLACEHOLDER
        assert result["amount"] == MISSING_FIELD_PLACEHOLDER


class TestListingItem:
    """Tests for ListingItem dataclass."""

    def test_defaults(self):
        item = ListingItem(title="공고 제목입니다", url="https://example.or.kr/1")
        assert item.raw_date == ""
        assert item.item_id == ""
        assert item.to_dict()["page"] == 0


class TestAnnouncementRecord:
    """Tests for AnnouncementRecord dataclass."""

    def test_clean_title(self):
        assert make_record().clean_title == "2026년 청년 창업 지원사업"

    def test_to_dict_camel_case(self):
        """Test the output schema uses camelCase keys."""
        result = make_record().to_dict()

        assert result["id"] == "bizinfo_PBLN_1"
        assert result["sourceId"] == "bizinfo"
        assert result["cleanTitle"] == "2026년 청년 창업 지원사업"
        assert result["regionCategory"] == "수도권"
        assert result["isTarget"] is True
        assert result["isNew"] is True
        assert result["rawDate"] == "2026-03-01 ~ 2026-03-31"
        assert result["collectedAt"].startswith("2026-03-02")

    def test_to_dict_without_detail(self):
        """Test a record without detail still has every detail field."""
        detail = make_record(detail=None).to_dict()["detail"]
        assert set(detail) == {"eligibility", "content", "period", "amount", "organ", "contact", "method"}
        assert all(value == MISSING_FIELD_PLACEHOLDER for value in detail.values())


class TestDailySnapshot:
    """Tests for DailySnapshot dataclass."""

    def test_counts(self):
        snapshot = DailySnapshot(
            date="2026-03-02",
            records=[
                make_record("bizinfo_1"),
                make_record("bizinfo_2", is_new=False, is_target=False),
            ],
        )
        assert snapshot.total == 2
        assert snapshot.new_count == 1
        assert snapshot.target_count == 1

    def test_to_dict_groups_by_source(self):
        """Test records are grouped per source with per-source counts."""
        snapshot = DailySnapshot(
            date="2026-03-02",
            records=[
                make_record("bizinfo_1"),
                make_record("kstartup_1", source_id="kstartup", is_new=False),
            ],
            source_names={"bizinfo": "기업마당", "kstartup": "K-Startup"},
            source_urls={"bizinfo": "https://www.bizinfo.go.kr"},
        )
        result = snapshot.to_dict()

        assert result["date"] == "2026-03-02"
        assert result["total"] == 2
        assert result["newCount"] == 1
        assert result["sources"]["bizinfo"]["name"] == "기업마당"
        assert result["sources"]["bizinfo"]["newCount"] == 1
        assert result["sources"]["kstartup"]["url"] == ""
        assert result["sources"]["kstartup"]["items"][0]["id"] == "kstartup_1"

    def test_empty_source_listed(self):
        """Test configured sources without records still appear."""
        snapshot = DailySnapshot(date="2026-03-02", source_names={"bizinfo": "기업마당"})
        assert snapshot.to_dict()["sources"]["bizinfo"]["total"] == 0
