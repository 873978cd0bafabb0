import pytest

from ogp_image.errors import EmptyGlyphs


class CharSegmenter:
    """Splits text into single characters."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def segment(self, text: str) -> list[str]:
        self.calls.append(text)
        return list(text)


class FixedWidthMeasurer:
    """Every character is ``char_width`` wide; lines are ``height`` tall."""

    def __init__(self, char_width: int = 10, height: int = 20) -> None:
        self.char_width = char_width
        self.height = height

    def width(self, text: str) -> int:
        if not text.strip():
            raise EmptyGlyphs(text)
        return len(text) * self.char_width

    def line_height(self, text: str) -> int:
        if not text.strip():
            raise EmptyGlyphs(text)
        return self.height


class MemoryStore:
    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self.data: dict[str, bytes] = dict(initial or {})
        self.gets: list[str] = []
        self.puts: list[tuple[str, bytes]] = []

    def get(self, key: str) -> bytes | None:
        self.gets.append(key)
        return self.data.get(key)

    def put(self, key: str, data: bytes) -> None:
        self.puts.append((key, data))
        self.data[key] = data


@pytest.fixture
def char_segmenter() -> CharSegmenter:
    return CharSegmenter()


@pytest.fixture
def measurer() -> FixedWidthMeasurer:
    return FixedWidthMeasurer()
