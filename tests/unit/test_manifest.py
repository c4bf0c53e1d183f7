"""Tests for manifest building."""

import pytest

from usenet_post.application.manifest import ManifestBuilder, ManifestLine, parse_manifest_line
from usenet_post.domain.exceptions import ArchiveProbeError, ListingError
from usenet_post.domain.models import JobOptions
from usenet_post.infrastructure.archive import ArchiveWriter


def test_one_line_per_file_in_listing_order(fake_lister, entries):
    manifest = ManifestBuilder(fake_lister).build("remote:data/set")
    lines = manifest.render().split("\n")

    assert len(lines) == len(entries)
    for line, entry in zip(lines, entries):
        parsed = parse_manifest_line(line)
        assert parsed.name == entry.name
        assert parsed.size == entry.size
        assert parsed.command == fake_lister.cat_command(entry.absolute_path)


def test_line_format():
    line = ManifestLine(name="b.txt", size=11, command="rclone cat 'remote:x/b.txt'")
    assert line.render() == 'procjson://"b.txt",11,"rclone cat \'remote:x/b.txt\'"'


def test_names_with_quotes_survive():
    line = ManifestLine(name='say "hi".txt', size=3, command='rclone cat \'a "b"\'')
    assert parse_manifest_line(line.render()) == line


def test_parse_rejects_other_schemes():
    with pytest.raises(ValueError):
        parse_manifest_line('file://"a",1,"b"')


def test_naming_function_renames(fake_lister):
    options = JobOptions(filename=lambda entry: entry.path.replace("/", "_"))
    manifest = ManifestBuilder(fake_lister).build("remote:data/set", options)
    assert [line.name for line in manifest.lines] == ["a_b.txt", "c.bin"]


def test_constant_filename(fake_lister):
    manifest = ManifestBuilder(fake_lister).build("remote:data/set", JobOptions(filename="posted.bin"))
    assert {line.name for line in manifest.lines} == {"posted.bin"}


def test_empty_listing_is_an_error(make_lister):
    with pytest.raises(ListingError):
        ManifestBuilder(make_lister([])).build("remote:empty")


def test_listing_error_propagates(make_lister):
    lister = make_lister(error=ListingError("backend down"))
    with pytest.raises(ListingError, match="backend down"):
        ManifestBuilder(lister).build("remote:x")


def test_archive_mode_single_line(fake_lister, entries):
    manifest = ManifestBuilder(fake_lister, archive_cmd="usenet-post-archive").build(
        "remote:data/set", JobOptions(archive=True)
    )

    assert len(manifest.lines) == 1
    line = manifest.lines[0]
    assert line.name == "set.tar"
    assert line.size == ArchiveWriter.dry_run(entries)
    assert line.command == "usenet-post-archive remote:data/set"
    assert manifest.entries == entries


def test_archive_source_is_shell_quoted(fake_lister):
    manifest = ManifestBuilder(fake_lister).build("remote:my files", JobOptions(archive=True))
    assert manifest.lines[0].command == "usenet-post-archive 'remote:my files'"


def test_archive_command_carries_rclone_command(fake_lister):
    builder = ManifestBuilder(fake_lister, rclone_cmd="/opt/rclone --config /etc/rclone.conf")
    manifest = builder.build("remote:data/set", JobOptions(archive=True))

    assert manifest.lines[0].command == (
        "usenet-post-archive --rclone '/opt/rclone --config /etc/rclone.conf' remote:data/set"
    )


def test_archive_probe_failure(fake_lister, monkeypatch):
    def broken(entries):
        raise ArchiveProbeError("no space")

    monkeypatch.setattr(ArchiveWriter, "dry_run", staticmethod(broken))
    with pytest.raises(ArchiveProbeError):
        ManifestBuilder(fake_lister).build("remote:data/set", JobOptions(archive=True))
