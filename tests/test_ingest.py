import pytest


def _pipeline(settings, store, commit_source, polisher=None):
    from changelog_manager.core.ingest import CommitIngestionPipeline

    return CommitIngestionPipeline(
        settings,
        store=store,
        commit_source=commit_source,
        polisher=polisher,
        use_default_polisher=False,
    )


def test_first_run_creates_draft_with_entries(settings, store, commit_source):
    commit_source.messages = ["Add login page", "Fix crash on start"]
    result = _pipeline(settings, store, commit_source).run()

    assert result.status == "added"
    assert result.added == 2
    text = store.read_draft()
    assert text.startswith("---\nversion: 0.1.0\n")
    assert "- Add login page <!-- hash:a436ab02 -->" in text
    lines = text.split("\n")
    idx = lines.index("## **Unreleased**")
    assert lines[idx + 1].startswith("- Add login page")
    assert lines[idx + 2].startswith("- Fix crash on start")
    assert commit_source.ranges == [settings.git_time_range]


def test_ingestion_is_idempotent(settings, store, commit_source):
    commit_source.messages = ["one", "two", "three"]
    pipeline = _pipeline(settings, store, commit_source)

    first = pipeline.run()
    snapshot = store.read_draft()
    second = pipeline.run()

    assert first.added == 3
    assert second.status == "no_changes"
    assert second.added == 0
    assert store.read_draft() == snapshot


def test_repeated_message_in_one_batch_added_once(settings, store, commit_source):
    from changelog_manager.core.hashing import hashes_in, message_hash

    commit_source.messages = ["same", "other", "same"]
    result = _pipeline(settings, store, commit_source).run()

    assert [e.raw_message for e in result.entries] == ["same", "other"]
    assert hashes_in(store.read_draft()).count(message_hash("same")) == 1


def test_custom_message_duplicate_and_new(settings, store, commit_source, make_doc):
    from changelog_manager.core.hashing import message_hash

    existing = "Improve docs"
    make_doc("draft.md", "0.2.0", entries=[f"- {existing} <!-- hash:{message_hash(existing)} -->"])
    pipeline = _pipeline(settings, store, commit_source)
    before = store.read_draft()

    dup = pipeline.run(existing)
    assert dup.status == "duplicate"
    assert store.read_draft() == before

    added = pipeline.run("Support dark mode")
    assert added.status == "added"
    lines = store.read_draft().split("\n")
    idx = lines.index("## **Unreleased**")
    assert lines[idx + 1] == f"- Support dark mode <!-- hash:{message_hash('Support dark mode')} -->"
    assert lines[idx + 2].startswith(f"- {existing} ")
    assert len(store.read_draft().split("\n")) == len(before.split("\n")) + 1
    # custom messages never consult git
    assert commit_source.ranges == []


def test_hash_anywhere_in_document_counts_as_duplicate(settings, store, commit_source, make_doc):
    from changelog_manager.core.hashing import message_hash

    path = make_doc("draft.md", "0.2.0")
    path.write_text(
        path.read_text(encoding="utf-8")
        + f"\n## Older\n- Legacy <!-- hash:{message_hash('Legacy')} -->\n",
        encoding="utf-8",
    )
    commit_source.messages = ["Legacy"]
    assert _pipeline(settings, store, commit_source).run().status == "no_changes"


def test_writes_into_untagged_version_document(settings, store, commit_source, make_doc):
    make_doc("1.0.0.md", "1.0.0", tag="v1.0.0")
    path = make_doc("1.1.0.md", "1.1.0")
    commit_source.messages = ["New thing"]

    result = _pipeline(settings, store, commit_source).run()
    assert result.document.path == path
    assert "- New thing <!-- hash:" in path.read_text(encoding="utf-8")
    assert store.read_draft() is None


def test_new_draft_uses_next_patch_placeholder(settings, store, commit_source, make_doc):
    make_doc("1.3.0.md", "1.3.0", tag="v1.3.0")
    commit_source.messages = ["Something"]
    _pipeline(settings, store, commit_source).run()
    assert "version: 1.3.1" in store.read_draft()


def test_polisher_output_used_and_hash_from_raw(settings, store, commit_source):
    from changelog_manager.core.hashing import message_hash

    class Polisher:
        name = "fake"

        def polish(self, messages, use_emojis=False):
            return [f"- Polished: {m.upper()}" for m in messages]

    commit_source.messages = ["fix bug"]
    _pipeline(settings, store, commit_source, Polisher()).run()
    assert f"- Polished: FIX BUG <!-- hash:{message_hash('fix bug')} -->" in store.read_draft()


def test_polisher_failure_falls_back_to_raw(settings, store, commit_source):
    from changelog_manager.errors import PolisherError

    class Broken:
        name = "broken"

        def polish(self, messages, use_emojis=False):
            raise PolisherError("boom")

    commit_source.messages = ["a", "b"]
    result = _pipeline(settings, store, commit_source, Broken()).run()
    assert [e.rendered_text for e in result.entries] == ["- a", "- b"]


def test_no_commits_writes_nothing(settings, store, commit_source):
    result = _pipeline(settings, store, commit_source).run()
    assert result.status == "no_changes"
    assert store.read_draft() is None


@pytest.mark.parametrize("blank", ["", "   "])
def test_blank_custom_message_reads_commits(settings, store, commit_source, blank):
    commit_source.messages = ["from git"]
    result = _pipeline(settings, store, commit_source).run(blank)
    assert [e.raw_message for e in result.entries] == ["from git"]
