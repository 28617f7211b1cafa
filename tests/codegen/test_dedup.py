"""Tests for duplicate structure suppression."""

from pgstruct_cli.codegen.dedup import Deduplicator


class TestDeduplicator:
    """Tests for Deduplicator.admit."""

    def test_first_occurrence_wins(self):
        dedup = Deduplicator()
        results = [dedup.admit(name) for name in ["Customer", "Order", "Customer", "Customer"]]
        assert results == [True, True, False, False]

    def test_grantee_repeats_are_not_collisions(self):
        """Rows for the same object with different grantees share a signature."""
        dedup = Deduplicator()
        assert dedup.admit("Customer", "public.customer")
        assert not dedup.admit("Customer", "public.customer")
        assert dedup.collisions == []

    def test_distinct_signatures_are_recorded_once(self):
        dedup = Deduplicator()
        dedup.admit("Search", "public.search(text)")
        dedup.admit("Search", "public.search(text, integer)")
        dedup.admit("Search", "public.search(text, integer)")

        assert len(dedup.collisions) == 1
        collision = dedup.collisions[0]
        assert collision.struct_name == "Search"
        assert collision.kept == "public.search(text)"
        assert collision.discarded == "public.search(text, integer)"

    def test_collision_is_logged(self, caplog):
        dedup = Deduplicator()
        dedup.admit("Search", "public.search(text)")
        with caplog.at_level("WARNING"):
            dedup.admit("Search", "other.search(text)")
        assert "other.search(text)" in caplog.text

    def test_reset_starts_a_new_run(self):
        dedup = Deduplicator()
        dedup.admit("Customer", "a")
        dedup.admit("Customer", "b")
        dedup.reset()

        assert len(dedup) == 0
        assert dedup.collisions == []
        assert dedup.admit("Customer")

    def test_membership(self):
        dedup = Deduplicator()
        dedup.admit("Customer")
        assert "Customer" in dedup
        assert "Order" not in dedup
        assert len(dedup) == 1
