# retro_chip8/devices/display.py
"""
フレームバッファ

64x32 の1bitピクセルを保持し、XORによるスプライト描画と全消去のみを受け付けます。
ダブルバッファリングは行いません。ここにある内容が「現在表示されるべき画面」そのものです。
"""
from typing import Iterable, List, Optional, Tuple

WIDTH = 64
HEIGHT = 32
PIXEL_COUNT = WIDTH * HEIGHT
SPRITE_WIDTH = 8

# @intent:responsibility 画面状態を保持し、描画命令からの変更を受け付けます。
class Framebuffer:
    """
    行優先 (row-major) の 64x32 モノクロビットマップ。
    各要素は 0 (消灯) または 1 (点灯)。
    """
    def __init__(self, pixels: Optional[bytes] = None):
        if pixels is None:
            self._pixels = bytearray(PIXEL_COUNT)
        else:
            if len(pixels) != PIXEL_COUNT:
                raise ValueError(f"Framebuffer needs {PIXEL_COUNT} pixels, got {len(pixels)}.")
            if any(p not in (0, 1) for p in pixels):
                raise ValueError("Framebuffer pixels must be 0 or 1.")
            self._pixels = bytearray(pixels)

    def clear(self) -> None:
        self._pixels = bytearray(PIXEL_COUNT)

    # @intent:responsibility 1バイト分 (8ピクセル) のスプライト行をXOR描画します。
    # @intent:return 点灯していたピクセルが消灯した場合 True (衝突)。
    # @intent:rationale 画面端の扱いは clip で切り替える。False なら同じ行の先頭へ回り込む。
    def draw_row(self, x: int, y: int, data: int, clip: bool = False) -> bool:
        if clip and y >= HEIGHT:
            return False
        row = y % HEIGHT
        collision = False
        for bit in range(SPRITE_WIDTH):
            if not data & (0x80 >> bit):
                continue
            column = x + bit
            if column >= WIDTH:
                if clip:
                    break
                column %= WIDTH
            pos = row * WIDTH + column
            if self._pixels[pos]:
                collision = True
            self._pixels[pos] ^= 1
        return collision

    # @intent:responsibility 複数行のスプライトを描画し、衝突の有無を返します。
    def draw_sprite(self, x: int, y: int, rows: Iterable[int], clip: bool = False) -> bool:
        """
        原点 (x mod 64, y mod 32) から、rows の各バイトを1行ずつ描画します。
        """
        origin_x = x % WIDTH
        origin_y = y % HEIGHT
        collision = False
        for offset, data in enumerate(rows):
            collision |= self.draw_row(origin_x, origin_y + offset, data, clip)
        return collision

    def get_pixel(self, x: int, y: int) -> int:
        return self._pixels[y * WIDTH + x]

    def to_bytes(self) -> bytes:
        return bytes(self._pixels)

    def view(self) -> 'FramebufferView':
        return FramebufferView(bytes(self._pixels))

# @intent:responsibility 描画側・デバッグビュー向けの読み取り専用ビュー。
class FramebufferView:
    """
    ある時点のフレームバッファの不変コピー。
    """
    width = WIDTH
    height = HEIGHT

    def __init__(self, pixels: bytes):
        self._pixels = pixels

    def pixel(self, x: int, y: int) -> bool:
        if not (0 <= x < WIDTH and 0 <= y < HEIGHT):
            raise IndexError(f"Pixel ({x}, {y}) outside {WIDTH}x{HEIGHT}.")
        return bool(self._pixels[y * WIDTH + x])

    def rows(self) -> List[Tuple[bool, ...]]:
        return [
            tuple(bool(p) for p in self._pixels[y * WIDTH:(y + 1) * WIDTH])
            for y in range(HEIGHT)
        ]

    def to_bytes(self) -> bytes:
        return self._pixels

    # @intent:utility_function テキスト表示用（CLIの画面ダンプ等）。
    def to_text(self, on: str = "#", off: str = ".") -> str:
        return "\n".join("".join(on if p else off for p in row) for row in self.rows())

    def is_blank(self) -> bool:
        return not any(self._pixels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FramebufferView):
            return NotImplemented
        return self._pixels == other._pixels

    def __hash__(self) -> int:
        return hash(self._pixels)
