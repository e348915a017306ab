"""
Tests for the multi-locale pipeline and locale reconciliation.
"""

import copy
from datetime import datetime, timezone

import pytest

from conftest import FakeGateway, RecordingStore, rich_text
from translate_locales.config import LocalizationConfig
from translate_locales.errors import DocumentNotFoundError
from translate_locales.store.base import SKIP_AUTO_PROCESSING, DocumentStatus
from translate_locales.translation.pipeline import TranslationPipeline, TranslationRequest
from translate_locales.translation.reconciler import LocaleState, build_synthesized_document

COLLECTION = "cases"


class TypedStore(RecordingStore):
    """Returns source-locale documents carrying non-JSON values."""

    def __init__(self, db_path, extra):
        super().__init__(db_path)
        self.extra = extra

    async def find_by_id(self, collection, doc_id, *, locale, fallback_locale=False, depth=0):
        document = await super().find_by_id(
            collection, doc_id, locale=locale, fallback_locale=fallback_locale, depth=depth
        )
        if document is not None and locale == "en":
            document.update(self.extra)
        return document


async def _seed(store, document, doc_id="case-1", locale="en"):
    """Store a source document and forget the write."""
    created = await store.create(
        COLLECTION,
        document,
        locale=locale,
        status=DocumentStatus.PUBLISHED,
        context=SKIP_AUTO_PROCESSING,
        doc_id=doc_id,
    )
    store.creates.clear()
    return created


def _request(document, paths, **kwargs) -> TranslationRequest:
    return TranslationRequest(
        document=document, collection=COLLECTION, translatable_paths=paths, **kwargs
    )


class TestLocaleResolution:
    """Test source and target locale selection."""

    def test_targets_exclude_source(self, pipeline):
        assert pipeline.resolve_target_locales("en") == ["lt", "de"]

    def test_targets_filtered_by_codes(self, pipeline):
        assert pipeline.resolve_target_locales("en", ["de", "fr"]) == ["de"]

    def test_source_from_argument(self, pipeline):
        assert pipeline.resolve_source_locale({"sourceLanguage": "lt"}, "de") == "de"

    def test_source_from_document(self, pipeline):
        assert pipeline.resolve_source_locale({"sourceLanguage": "lt"}) == "lt"

    def test_source_from_default_locale(self, store, gateway):
        localization = LocalizationConfig(locale_codes=["lt", "en"], default_locale="lt")
        pipeline = TranslationPipeline(store, gateway, localization)
        assert pipeline.resolve_source_locale({}) == "lt"


class TestSynthesize:
    """Test creation of missing locale instances."""

    @pytest.mark.asyncio
    async def test_creates_each_locale_independently(self, store, pipeline):
        source = await _seed(
            store, {"title": "Hello", "body": {"root": {"children": [
                {"type": "text", "text": "Hi there"}
            ]}}}
        )

        report = await pipeline.translate(_request(source, ["title", "body"]))

        assert sorted(report.committed) == ["de", "lt"]
        assert report.failed == []
        assert store.updates == []
        assert sorted(c["locale"] for c in store.creates) == ["de", "lt"]

        for create in store.creates:
            locale = create["locale"]
            data = create["data"]
            assert data["title"] == f"[{locale}] Hello"
            assert data["body"]["root"]["children"][0]["text"] == f"[{locale}] Hi there"
            assert "id" not in data
            assert "createdAt" not in data
            assert "updatedAt" not in data
            assert create["status"] == DocumentStatus.DRAFT
            assert create["context"].skip_auto_processing is True
            assert create["doc_id"] == "case-1"

    @pytest.mark.asyncio
    async def test_created_documents_share_identity(self, store, pipeline, case_document,
                                                    case_fields):
        source = await _seed(store, case_document)
        await pipeline.translate(_request(source, case_fields))

        for locale in ("lt", "de"):
            stored = await store.find_by_id(COLLECTION, "case-1", locale=locale)
            assert stored is not None
            assert stored["id"] == "case-1"
            assert stored["_status"] == "draft"

    @pytest.mark.asyncio
    async def test_copy_through_completeness(self, store, pipeline, case_document, case_fields):
        source = await _seed(store, case_document)
        await pipeline.translate(_request(source, case_fields))

        stored = await store.find_by_id(COLLECTION, "case-1", locale="de")
        assert stored["price"] == 42
        assert stored["slug"] == "hello"
        assert stored["thumbnail"] == {"id": "media-1", "url": "/media/hello.png"}
        assert stored["firstSection"] == {"text": "[de] Intro", "image": "media-2"}
        assert stored["strategies"][1]["description"] == ""
        assert stored["strategies"][1]["order"] == 2

    @pytest.mark.asyncio
    async def test_unsupported_translatable_field_carried_through(self, store, pipeline):
        source = await _seed(store, {"title": "Hello", "rating": 5})
        await pipeline.translate(_request(source, ["title", "rating"]))

        stored = await store.find_by_id(COLLECTION, "case-1", locale="lt")
        assert stored["rating"] == 5
        assert stored["title"] == "[lt] Hello"

    @pytest.mark.asyncio
    async def test_non_json_source_values_copied(self, tmp_path, gateway, localization):
        published = datetime(2024, 1, 1, tzinfo=timezone.utc)
        store = TypedStore(tmp_path / "typed.duckdb", extra={"publishedAt": published})
        pipeline = TranslationPipeline(store, gateway, localization)
        source = await _seed(store, {"title": "Hello"})

        report = await pipeline.translate(_request(source, ["title"]))

        assert sorted(report.committed) == ["de", "lt"]
        for create in store.creates:
            assert create["data"]["publishedAt"] == published
            assert create["data"]["title"] == f"[{create['locale']}] Hello"
        store.close()

    @pytest.mark.asyncio
    async def test_missing_source_instance_fails_locale(self, store, pipeline):
        report = await pipeline.translate(
            _request({"id": "ghost", "title": "Hello"}, ["title"])
        )
        assert sorted(report.failed) == ["de", "lt"]
        assert all(o.state == LocaleState.FAILED for o in report.outcomes)

    def test_backfills_parent_of_dotted_path(self):
        source = {"id": "x", "createdAt": "t", "title": "Hello"}
        document = build_synthesized_document(source, {}, ["hero.heading"])
        assert document == {"title": "Hello", "hero": {}}

    def test_excludes_status_and_identity(self):
        source = {"id": "x", "createdAt": "t", "updatedAt": "t", "_status": "published", "a": 1}
        assert build_synthesized_document(source, {}, []) == {"a": 1}


class TestMerge:
    """Test updates of existing locale instances."""

    @pytest.mark.asyncio
    async def test_existing_locale_is_updated(self, store, pipeline, case_document, case_fields):
        source = await _seed(store, case_document)
        await _seed(store, {"title": "Labas", "localNote": "keep me"}, locale="lt")

        report = await pipeline.translate(_request(source, case_fields, target_locales=["lt"]))

        assert report.outcome_for("lt").action == "update"
        assert store.creates == []
        assert len(store.updates) == 1

        update = store.updates[0]
        assert update["locale"] == "lt"
        assert update["context"].skip_auto_processing is True
        assert set(update["data"]) == {"title", "subtitle", "content", "strategies",
                                       "firstSection"}

        stored = await store.find_by_id(COLLECTION, "case-1", locale="lt")
        assert stored["title"] == "[lt] Hello"
        assert stored["localNote"] == "keep me"
        assert stored["_status"] == "published"

    @pytest.mark.asyncio
    async def test_idempotent_rerun(self, store, pipeline, case_document, case_fields):
        source = await _seed(store, case_document)
        await pipeline.translate(_request(source, case_fields))
        first = await store.find_by_id(COLLECTION, "case-1", locale="lt")

        report = await pipeline.translate(_request(source, case_fields))
        second = await store.find_by_id(COLLECTION, "case-1", locale="lt")

        assert {o.action for o in report.outcomes} == {"update"}
        first.pop("updatedAt")
        second.pop("updatedAt")
        assert first == second


class TestFailureIsolation:
    """Test that failures stay contained."""

    @pytest.mark.asyncio
    async def test_gateway_failure_for_one_locale(self, store, case_document, case_fields,
                                                  localization, caplog):
        gateway = FakeGateway(fail_locales={"de"})
        pipeline = TranslationPipeline(store, gateway, localization)
        source = await _seed(store, case_document)

        with caplog.at_level("WARNING"):
            report = await pipeline.translate(_request(source, case_fields))

        lt = await store.find_by_id(COLLECTION, "case-1", locale="lt")
        de = await store.find_by_id(COLLECTION, "case-1", locale="de")

        assert lt["title"] == "[lt] Hello"
        assert lt["content"]["root"]["children"][0]["children"][0]["text"] == "[lt] Hi there"
        # Untranslated fields fall back to source text, never empty
        assert de["title"] == "Hello"
        assert de["content"] == case_document["content"]
        assert de["firstSection"]["text"] == "Intro"
        assert report.outcome_for("lt").committed
        assert any("de" in record.getMessage() for record in caplog.records)

    @pytest.mark.asyncio
    async def test_store_failure_for_one_locale(self, tmp_path, gateway, localization,
                                                case_document, case_fields, caplog):
        store = RecordingStore(tmp_path / "failing.duckdb", fail_locales={"de"})
        pipeline = TranslationPipeline(store, gateway, localization)
        source = await _seed(store, case_document)

        with caplog.at_level("ERROR"):
            report = await pipeline.translate(_request(source, case_fields))

        assert report.committed == ["lt"]
        assert report.failed == ["de"]
        assert report.outcome_for("de").state == LocaleState.FAILED
        assert "write rejected" in report.outcome_for("de").error
        assert await store.find_by_id(COLLECTION, "case-1", locale="lt") is not None
        assert any(
            getattr(record, "context", {}).get("locale") == "de" for record in caplog.records
        )
        store.close()

    @pytest.mark.asyncio
    async def test_partial_field_failure(self, store, localization, case_document, case_fields):
        gateway = FakeGateway(fail_texts={"A short story"})
        pipeline = TranslationPipeline(store, gateway, localization)
        source = await _seed(store, case_document)

        await pipeline.translate(_request(source, case_fields, target_locales=["lt"]))

        stored = await store.find_by_id(COLLECTION, "case-1", locale="lt")
        assert stored["subtitle"] == "A short story"
        assert stored["title"] == "[lt] Hello"


class TestLocaleIsolation:
    """Test that locales never share mutable state."""

    @pytest.mark.asyncio
    async def test_source_and_siblings_untouched(self, store, pipeline, case_document,
                                                 case_fields):
        source = await _seed(store, case_document)
        snapshot = copy.deepcopy(source)

        await pipeline.translate(_request(source, case_fields))

        assert source == snapshot
        lt_data = next(c["data"] for c in store.creates if c["locale"] == "lt")
        de_data = next(c["data"] for c in store.creates if c["locale"] == "de")
        lt_text = lt_data["content"]["root"]["children"][0]["children"][0]["text"]
        de_text = de_data["content"]["root"]["children"][0]["children"][0]["text"]
        assert lt_text == "[lt] Hi there"
        assert de_text == "[de] Hi there"


class TestTranslateById:
    """Test the fetch-then-translate entry point."""

    @pytest.mark.asyncio
    async def test_missing_source_raises(self, pipeline):
        with pytest.raises(DocumentNotFoundError):
            await pipeline.translate_by_id(COLLECTION, "nope", ["title"])

    @pytest.mark.asyncio
    async def test_translates_stored_document(self, store, pipeline):
        await _seed(store, {"title": "Hello", "content": rich_text("Body")})

        report = await pipeline.translate_by_id(
            COLLECTION, "case-1", ["title", "content"], target_locales=["de"]
        )

        assert report.committed == ["de"]
        stored = await store.find_by_id(COLLECTION, "case-1", locale="de")
        assert stored["content"]["root"]["children"][0]["children"][0]["text"] == "[de] Body"

    @pytest.mark.asyncio
    async def test_no_targets(self, store, gateway):
        localization = LocalizationConfig(locale_codes=["en"], default_locale="en")
        pipeline = TranslationPipeline(store, gateway, localization)
        await _seed(store, {"title": "Hello"})

        report = await pipeline.translate_by_id(COLLECTION, "case-1", ["title"])

        assert report.outcomes == []
        assert gateway.calls == []
