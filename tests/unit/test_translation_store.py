"""
Unit tests for the translation record store (translations/store.py)
"""
import pytest

from translation_service.core.db import engine
from translation_service.core.exceptions import ResourceExistsError
from translation_service.translations import (
    TranslationCreate,
    TranslationSearch,
    TranslationStore,
    TranslationUpdate,
)


@pytest.fixture
def store():
    return TranslationStore(engine)


@pytest.fixture
def events(store):
    received = []
    store.on_write(received.append)
    return received


@pytest.fixture
def seeded(store, session, sample_translations):
    return [
        store.create(session=session, translation_in=TranslationCreate(**data))
        for data in sample_translations
    ]


class TestTranslationStoreWrites:
    """Test the write path and its post-commit notifications."""

    def test_create_assigns_increasing_ids(self, store, session):
        first = store.create(
            session=session,
            translation_in=TranslationCreate(locale="en", key="a", value="A"),
        )
        second = store.create(
            session=session,
            translation_in=TranslationCreate(locale="en", key="b", value="B"),
        )
        assert second.id > first.id

    def test_create_notifies_after_commit(self, store, session, events):
        created = store.create(
            session=session,
            translation_in=TranslationCreate(
                locale="en", key="title", value="Title", tags=["web", "web"]
            ),
        )

        assert created.tags == ["web"]
        assert [(e.operation, e.translation_id) for e in events] == [
            ("create", created.id)
        ]

    def test_duplicate_locale_key_conflicts_without_notifying(
        self, store, session, events
    ):
        data = TranslationCreate(locale="en", key="title", value="Title")
        store.create(session=session, translation_in=data)

        with pytest.raises(ResourceExistsError) as exc_info:
            store.create(session=session, translation_in=data)

        assert exc_info.value.status_code == 409
        assert exc_info.value.error_code == "TRANSLATION_EXISTS"
        assert len(events) == 1

    def test_same_key_in_other_locale_allowed(self, store, session):
        store.create(
            session=session,
            translation_in=TranslationCreate(locale="en", key="title", value="Title"),
        )
        store.create(
            session=session,
            translation_in=TranslationCreate(locale="fr", key="title", value="Titre"),
        )

    def test_partial_update(self, store, session, seeded, events):
        target = seeded[0]
        before = target.updated_at

        updated = store.update(
            session=session,
            db_obj=target,
            translation_in=TranslationUpdate(value="Hello there"),
        )

        assert updated.value == "Hello there"
        assert updated.key == "greeting"
        assert updated.tags == ["web"]
        assert updated.updated_at >= before
        assert events[-1].operation == "update"

    def test_empty_update_is_not_a_write(self, store, session, seeded, events):
        count = len(events)
        store.update(session=session, db_obj=seeded[0], translation_in=TranslationUpdate())
        assert len(events) == count

    def test_update_into_existing_pair_conflicts(self, store, session, seeded, events):
        count = len(events)
        with pytest.raises(ResourceExistsError):
            store.update(
                session=session,
                db_obj=seeded[3],  # en/farewell
                translation_in=TranslationUpdate(key="greeting"),
            )
        assert len(events) == count

    def test_delete_notifies(self, store, session, seeded, events):
        target_id = seeded[1].id
        store.delete(session=session, db_obj=seeded[1])

        assert store.get(session=session, translation_id=target_id) is None
        assert events[-1].operation == "delete"
        assert events[-1].translation_id == target_id

    def test_unsubscribe(self, store, session):
        received = []
        unsubscribe = store.on_write(received.append)
        unsubscribe()
        unsubscribe()

        store.create(
            session=session,
            translation_in=TranslationCreate(locale="en", key="x", value="X"),
        )
        assert received == []


class TestTranslationStoreSearch:
    """Test filtered, paginated search."""

    def search(self, store, session, **filters):
        rows, count = store.search(session=session, filters=TranslationSearch(**filters))
        return [(r.locale, r.key) for r in rows], count

    def test_no_filters_returns_everything_in_id_order(self, store, session, seeded):
        rows, count = store.search(session=session, filters=TranslationSearch())
        assert count == 5
        assert [r.id for r in rows] == sorted(r.id for r in seeded)

    def test_key_substring(self, store, session, seeded):
        assert self.search(store, session, key="fare") == (
            [("de", "farewell"), ("en", "farewell")],
            2,
        )

    def test_value_substring(self, store, session, seeded):
        keys, count = self.search(store, session, value="jour")
        assert keys == [("fr", "greeting")]

    def test_locale_exact(self, store, session, seeded):
        keys, count = self.search(store, session, locale="en")
        assert count == 3

    def test_tags_match_any_whole_tag(self, store, session, seeded):
        keys, count = self.search(store, session, tags=["web"])
        assert keys == [("en", "greeting"), ("fr", "greeting")]

        keys, count = self.search(store, session, tags=["webview", "mobile"])
        assert count == 3

    def test_like_wildcards_are_literal(self, store, session, seeded):
        assert self.search(store, session, key="%") == ([], 0)
        assert self.search(store, session, key="_") == ([], 0)

    def test_filters_combine(self, store, session, seeded):
        keys, _ = self.search(store, session, key="greeting", locale="fr")
        assert keys == [("fr", "greeting")]

    def test_pagination(self, store, session, seeded):
        rows, count = store.search(
            session=session, filters=TranslationSearch(), skip=2, limit=2
        )
        assert count == 5
        assert [r.id for r in rows] == [seeded[2].id, seeded[3].id]


class TestTranslationStoreScan:
    """Test the keyset scan used by the export."""

    def test_scan_pages_in_id_order(self, store, seeded):
        pages = list(store.scan_pages(2))

        assert [len(p) for p in pages] == [2, 2, 1]
        assert [row.id for page in pages for row in page] == [r.id for r in seeded]

    def test_exact_multiple_of_page_size(self, store, seeded):
        assert [len(p) for p in store.scan_pages(5)] == [5]

    def test_scan_ordered_flattens(self, store, seeded):
        rows = list(store.scan_ordered(3))
        assert [(r.locale, r.key, r.value) for r in rows][2] == (
            "de",
            "farewell",
            "Tschüss",
        )

    def test_scan_empty_table(self, store):
        assert list(store.scan_pages(10)) == []

    def test_scan_sees_rows_committed_mid_scan(self, store, session, seeded):
        pages = store.scan_pages(2)
        next(pages)
        store.create(
            session=session,
            translation_in=TranslationCreate(locale="it", key="late", value="Tardi"),
        )
        remaining = [row.key for page in pages for row in page]
        assert remaining[-1] == "late"

    def test_invalid_page_size(self, store):
        with pytest.raises(ValueError):
            list(store.scan_pages(0))
