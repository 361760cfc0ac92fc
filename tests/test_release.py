import json

import pytest


@pytest.fixture
def manifest_file(settings):
    path = settings.project_root / "package.json"
    path.write_text(json.dumps({"name": "demo", "version": "1.0.0"}, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def pushes():
    return []


@pytest.fixture
def cutter(settings, store, tag_publisher, release_host, pushes):
    from changelog_manager.core.release import ReleaseCutter

    def pusher(root, version):
        pushes.append((root, version))
        return True

    return ReleaseCutter(
        settings,
        store=store,
        tag_publisher=tag_publisher,
        release_host=release_host,
        pusher=pusher,
        today=lambda: "2024-07-04",
    )


def test_release_cut_renames_draft(cutter, store, manifest_file, make_doc, tag_publisher, release_host, pushes):
    make_doc("draft.md", "0.2.0", entries=["- Shiny <!-- hash:0badc0de -->"])

    result = cutter.release("minor")

    assert result.previous_version == "1.0.0"
    assert result.version == "1.1.0"
    released = store.read(store.version_path("1.1.0"))
    assert released is not None
    assert released.startswith(
        "---\nversion: 1.1.0\ndate: 2024-07-04\ntag: v1.1.0\n---\n\n# Release 1.1.0\n"
    )
    assert "## **Unreleased**" not in released
    assert "- Shiny <!-- hash:0badc0de -->" in released

    draft = store.read_draft()
    assert "version: 1.1.1\n" in draft
    assert "tag: \n" in draft
    assert "## **Unreleased**" in draft
    assert "hash:" not in draft

    assert json.loads(manifest_file.read_text(encoding="utf-8"))["version"] == "1.1.0"
    assert tag_publisher.tags == ["1.1.0"]
    assert pushes == [(cutter.settings.project_root, "1.1.0")]
    assert release_host.calls[0][:2] == ("v1.1.0", "v1.1.0")
    assert release_host.calls[0][2].startswith("# Release 1.1.0")
    assert "- Shiny" in release_host.calls[0][2]
    assert result.tagged and result.pushed and result.published
    assert not result.fabricated


def test_release_without_open_document_fabricates_minimal(cutter, store, manifest_file, release_host):
    result = cutter.release("patch")

    assert result.fabricated is True
    text = store.read(store.version_path("1.0.1"))
    assert text == (
        "---\nversion: 1.0.1\ndate: 2024-07-04\ntag: v1.0.1\n---\n\n"
        "# Release 1.0.1\n\n- Release 1.0.1\n"
    )
    assert release_host.calls[0][2] == "# Release 1.0.1\n\n- Release 1.0.1"
    assert "version: 1.0.2" in store.read_draft()


def test_tag_key_not_invented(cutter, store, manifest_file):
    store.write_draft("---\nversion: 0.0.1\ndate: 2024-01-01\n---\n\n# Release 0.0.1\n\n## **Unreleased**\n\n- x\n")
    cutter.release("patch")
    text = store.read(store.version_path("1.0.1"))
    assert text.startswith("---\nversion: 1.0.1\ndate: 2024-07-04\n---\n")
    assert "tag:" not in text


def test_existing_tag_value_kept(cutter, store, manifest_file, make_doc):
    make_doc("draft.md", "0.2.0", tag="custom-tag")
    cutter.release("patch")
    assert "tag: custom-tag\n" in store.read(store.version_path("1.0.1"))


def test_release_from_untagged_version_document(cutter, store, manifest_file, make_doc):
    make_doc("1.0.0.md", "1.0.0", tag="v1.0.0")
    old = make_doc("1.0.5.md", "1.0.5", entries=["- pending <!-- hash:12345678 -->"])

    cutter.release("minor")

    assert not old.exists()
    assert "- pending <!-- hash:12345678 -->" in store.read(store.version_path("1.1.0"))
    assert "version: 1.1.1" in store.read_draft()


def test_collaborator_failures_do_not_stop_release(
    settings, store, manifest_file, make_doc, tag_publisher, release_host
):
    from changelog_manager.core.release import ReleaseCutter

    make_doc("draft.md", "0.2.0")
    tag_publisher.ok = RuntimeError("git missing")
    release_host.ok = RuntimeError("network down")

    def pusher(root, version):
        raise RuntimeError("no remote")

    result = ReleaseCutter(
        settings,
        store=store,
        tag_publisher=tag_publisher,
        release_host=release_host,
        pusher=pusher,
    ).release("major")

    assert result.version == "2.0.0"
    assert not (result.tagged or result.pushed or result.published)
    assert store.read(store.version_path("2.0.0")) is not None
    assert store.read_draft() is not None


def test_unreadable_manifest_defaults_to_zero(cutter, store):
    result = cutter.release("patch")
    assert result.previous_version == "0.0.0"
    assert result.version == "0.0.1"
    assert result.manifest_updated is False
    assert store.read(store.version_path("0.0.1")) is not None


def test_invalid_bump_type_mutates_nothing(cutter, store, manifest_file, make_doc):
    from changelog_manager.errors import InvalidBumpTypeError

    make_doc("draft.md", "0.2.0")
    before = store.read_draft()
    with pytest.raises(InvalidBumpTypeError):
        cutter.release("gigantic")
    assert store.read_draft() == before
    assert json.loads(manifest_file.read_text(encoding="utf-8"))["version"] == "1.0.0"


def test_disabled_tag_and_push_steps(settings, store, manifest_file, tag_publisher, release_host):
    from dataclasses import replace

    from changelog_manager.core.release import ReleaseCutter

    calls = []
    cutter = ReleaseCutter(
        replace(settings, create_tag=False, commit_and_push=False),
        store=store,
        tag_publisher=tag_publisher,
        release_host=release_host,
        pusher=lambda root, version: calls.append(version) or True,
    )
    cutter.release("patch")
    assert tag_publisher.tags == []
    assert calls == []


def test_version_files_updated(settings, store, manifest_file):
    from dataclasses import replace

    from changelog_manager.config import VersionFileSpec
    from changelog_manager.core.release import ReleaseCutter

    (settings.project_root / "version.py").write_text('__version__ = "1.0.0"\n', encoding="utf-8")
    specs = (
        VersionFileSpec(
            path="version.py",
            pattern=r'__version__ = "[^"]*"',
            replacement='__version__ = "{{version}}"',
        ),
    )
    result = ReleaseCutter(
        replace(settings, version_files=specs, create_tag=False, commit_and_push=False),
        store=store,
    ).release("patch")

    assert result.version_files == ["version.py"]
    assert (settings.project_root / "version.py").read_text(encoding="utf-8") == '__version__ = "1.0.1"\n'


def test_close_document_keeps_content():
    from changelog_manager.core.document import render_draft
    from changelog_manager.core.release import close_document

    text = render_draft("0.2.0", "2024-01-01").replace(
        "## **Unreleased**\n", "## **Unreleased**\n- a <!-- hash:aaaaaaaa -->\n"
    )
    out = close_document(text, "1.0.0", "2024-02-02")
    assert out == (
        "---\nversion: 1.0.0\ndate: 2024-02-02\ntag: v1.0.0\n---\n\n"
        "# Release 1.0.0\n\n"
        "- a <!-- hash:aaaaaaaa -->\n\n"
        "<!-- New entries will be added here -->\n\n"
    )


def test_close_document_edits_frontmatter_in_place():
    from changelog_manager.core.release import close_document

    text = (
        "---\n"
        "title: Notes\n"
        "version: 0.2.0\n"
        "date: 2024-01-01\n"
        "tag: \n"
        "authors:\n"
        "  - alice\n"
        "---\n"
        "\n"
        "# Release 0.2.0\n"
        "\n"
        "## **Unreleased**\n"
        "\n"
        "- a <!-- hash:aaaaaaaa -->\n"
    )
    out = close_document(text, "1.0.0", "2024-02-02")
    assert out == (
        "---\n"
        "title: Notes\n"
        "version: 1.0.0\n"
        "date: 2024-02-02\n"
        "tag: v1.0.0\n"
        "authors:\n"
        "  - alice\n"
        "---\n"
        "\n"
        "# Release 1.0.0\n"
        "\n"
        "- a <!-- hash:aaaaaaaa -->\n"
    )


def test_merged_header_of_any_level_is_removed_on_release():
    from changelog_manager.core.document import Entry
    from changelog_manager.core.merger import merge
    from changelog_manager.core.release import close_document

    draft = "---\nversion: 0.1.0\ndate: 2024-01-01\ntag: \n---\n\n# Release 0.1.0\n\n### **Unreleased**\n\n"
    merged = merge(draft, [Entry("Add export", "- Add export")])
    assert merged.index("### **Unreleased**") < merged.index("- Add export")

    out = close_document(merged, "0.2.0", "2024-03-03")
    assert "Unreleased" not in out
    assert "# Release 0.2.0\n\n- Add export <!-- hash:" in out


def test_release_reports_entry_count(cutter, store, manifest_file, make_doc):
    make_doc(
        "draft.md",
        "0.2.0",
        entries=["- One <!-- hash:11111111 -->", "- Two <!-- hash:22222222 -->"],
    )
    result = cutter.release("patch")
    assert result.entries == 2
    assert result.document == store.version_path("1.0.1")
    assert not store.draft_path.read_text(encoding="utf-8").count("hash:")


def test_undecodable_draft_is_replaced_by_minimal_document(cutter, store, manifest_file):
    store.ensure_directory()
    store.draft_path.write_bytes(b"---\nversion: 0.1.0\n---\n\xff\xfe broken\n")

    result = cutter.release("patch")

    assert result.fabricated is True
    assert result.entries == 0
    assert store.read(store.version_path("1.0.1")).endswith("# Release 1.0.1\n\n- Release 1.0.1\n")
    assert "version: 1.0.2" in store.read_draft()
