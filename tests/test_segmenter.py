import pytest

from ogp_image import segmenter as segmenter_module
from ogp_image.errors import SegmenterBuildError
from ogp_image.segmenter import (
    SegmenterResolver,
    UserDictionarySegmenter,
    _align_surfaces,
    compute_content_hash,
    parse_user_dictionary,
)

from conftest import CharSegmenter

DICTIONARY = "東京スカイツリー,カスタム名詞,トウキョウスカイツリー\n# comment\n\nとうきょう,名詞,トウキョウ\n"


def test_align_surfaces_keeps_skipped_whitespace():
    text = "  Hello world\tagain "
    tokens = _align_surfaces(text, ["Hello", "world", "again"])
    assert "".join(tokens) == text
    assert tokens == ["  Hello ", "world\t", "again "]


def test_align_surfaces_with_no_surfaces_returns_whole_text():
    assert _align_surfaces("   ", []) == ["   "]


def test_parse_user_dictionary_skips_comments_and_blank_lines():
    entries = parse_user_dictionary("dict.csv", DICTIONARY)
    assert [entry.surface for entry in entries] == ["東京スカイツリー", "とうきょう"]
    assert entries[0].part_of_speech == "カスタム名詞"


@pytest.mark.parametrize(
    "content,line",
    [
        ("a,b\n", 1),
        ("ok,名詞,オーケー\n,名詞,カラ\n", 2),
        ("ok,名詞,オーケー\n\nx,y,z,w\n", 3),
    ],
)
def test_parse_user_dictionary_reports_bad_rows(content, line):
    with pytest.raises(SegmenterBuildError) as excinfo:
        parse_user_dictionary("dict.csv", content)
    assert excinfo.value.line == line
    assert excinfo.value.source == "dict.csv"


def test_user_dictionary_segmenter_keeps_entries_atomic():
    entries = parse_user_dictionary("dict.csv", DICTIONARY)
    segmenter = UserDictionarySegmenter(CharSegmenter(), entries)

    tokens = segmenter.segment("今日は東京スカイツリーへ")

    assert "".join(tokens) == "今日は東京スカイツリーへ"
    assert "東京スカイツリー" in tokens
    assert tokens[:3] == ["今", "日", "は"]


def test_user_dictionary_segmenter_attaches_whitespace_to_previous_token():
    entries = parse_user_dictionary("dict.csv", "ab,名詞,エービー\n")
    segmenter = UserDictionarySegmenter(CharSegmenter(), entries)
    assert segmenter.segment("ab ab") == ["ab ", "ab"]


class _Fetcher:
    def __init__(self, content: bytes) -> None:
        self.content = content
        self.calls = 0

    def __call__(self, url: str) -> bytes:
        self.calls += 1
        return self.content


def _counting_builder(counter):
    def build(source, content, base):
        counter.append(source)
        return UserDictionarySegmenter(base, parse_user_dictionary(source, content))

    return build


def test_resolver_reuses_segmenter_while_hash_is_unchanged():
    fetch = _Fetcher(DICTIONARY.encode("utf-8"))
    builds = []
    resolver = SegmenterResolver(fetch, default_factory=CharSegmenter, builder=_counting_builder(builds))

    first = resolver.resolve("https://example.com/dict.csv")
    second = resolver.resolve("https://example.com/dict.csv")

    assert first is second
    assert builds == ["https://example.com/dict.csv"]
    assert fetch.calls == 2
    entry = resolver.cached_entry("https://example.com/dict.csv")
    assert entry.content_hash == compute_content_hash(DICTIONARY.encode("utf-8"))


def test_resolver_rebuilds_once_when_content_changes():
    fetch = _Fetcher(DICTIONARY.encode("utf-8"))
    builds = []
    resolver = SegmenterResolver(fetch, default_factory=CharSegmenter, builder=_counting_builder(builds))

    first = resolver.resolve("https://example.com/dict.csv")
    fetch.content = b"ab,name,ab\n"
    second = resolver.resolve("https://example.com/dict.csv")
    third = resolver.resolve("https://example.com/dict.csv")

    assert first is not second
    assert second is third
    assert len(builds) == 2
    assert resolver.cached_entry("https://example.com/dict.csv").content_hash == compute_content_hash(
        b"ab,name,ab\n"
    )


def test_build_failure_keeps_other_entries():
    fetch = _Fetcher(DICTIONARY.encode("utf-8"))
    resolver = SegmenterResolver(fetch, default_factory=CharSegmenter)
    good = resolver.resolve("https://example.com/good.csv")

    fetch.content = b"broken-row\n"
    with pytest.raises(SegmenterBuildError):
        resolver.resolve("https://example.com/bad.csv")

    assert resolver.cached_entry("https://example.com/bad.csv") is None
    assert resolver.cached_entry("https://example.com/good.csv").segmenter is good


def test_non_utf8_dictionary_is_a_build_error():
    resolver = SegmenterResolver(_Fetcher(b"\xff\xfe\xfa"), default_factory=CharSegmenter)
    with pytest.raises(SegmenterBuildError):
        resolver.resolve("https://example.com/dict.csv")


def test_default_segmenter_is_built_once():
    created = []

    def factory():
        created.append(1)
        return CharSegmenter()

    resolver = SegmenterResolver(_Fetcher(b""), default_factory=factory)
    assert resolver.resolve() is resolver.resolve(None)
    assert created == [1]


def test_mecab_segmenter_is_lossless():
    pytest.importorskip("MeCab")
    try:
        mecab = segmenter_module.MecabSegmenter()
    except RuntimeError as exc:  # pragma: no cover - dictionary missing
        pytest.skip(str(exc))
    text = "吾輩は猫である。 名前は まだ無い"
    tokens = mecab.segment(text)
    assert "".join(tokens) == text
    assert len(tokens) > 3
