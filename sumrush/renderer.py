"""PIL-based key images for the round display."""

from PIL import Image, ImageDraw, ImageFont

from sumrush.engine import Feedback, FeedbackKind

SIZE = (96, 96)
FONT_PATH = "/System/Library/Fonts/Helvetica.ttc"

BG_DARK = "#1e293b"
BG_HUD = "#111827"
BG_OPTION = "#065f46"

FEEDBACK_COLORS = {
    FeedbackKind.FAST: "#eab308",
    FeedbackKind.NORMAL: "#22c55e",
    FeedbackKind.COMBO: "#6366f1",
    FeedbackKind.INCORRECT: "#ef4444",
    FeedbackKind.TIMEOUT: "#ef4444",
}


def _font(size: int) -> ImageFont.FreeTypeFont:
    try:
        return ImageFont.truetype(FONT_PATH, size)
    except OSError:
        return ImageFont.load_default()


def _fit(text: str, big: int, mid: int, small: int) -> int:
    return big if len(text) <= 2 else mid if len(text) <= 3 else small


def feedback_color(kind: FeedbackKind) -> str:
    return FEEDBACK_COLORS.get(kind, "#ffffff")


def render_text_button(
    size: tuple[int, int] = SIZE,
    lines: list[str] | None = None,
    bg_color: str = BG_HUD,
    font_sizes: list[int] | None = None,
    colors: list[str] | None = None,
) -> Image.Image:
    """Render a text-only button: lines centered vertically."""
    img = Image.new("RGB", size, bg_color)
    if not lines:
        return img

    draw = ImageDraw.Draw(img)
    n = len(lines)
    font_sizes = list(font_sizes or [22, 14, 11, 9][:n])
    colors = list(colors or ["#ffffff", "#dddddd", "#aaaaaa", "#888888"][:n])
    while len(font_sizes) < n:
        font_sizes.append(font_sizes[-1])
    while len(colors) < n:
        colors.append(colors[-1])

    fonts = [_font(s) for s in font_sizes]
    line_heights = [f.getbbox("Ag")[3] - f.getbbox("Ag")[1] for f in fonts]
    spacing = 4
    total_h = sum(line_heights) + spacing * (n - 1)
    y = (size[1] - total_h) // 2

    for i, text in enumerate(lines):
        draw.text((size[0] // 2, y), text, font=fonts[i], fill=colors[i], anchor="mt")
        y += line_heights[i] + spacing
    return img


def render_empty(bg_color: str = BG_DARK, size=SIZE) -> Image.Image:
    return Image.new("RGB", size, bg_color)


# ── HUD ──────────────────────────────────────────────────────────────

def render_title(size=SIZE) -> Image.Image:
    return render_text_button(size, ["SUM", "RUSH"], font_sizes=[16, 16],
                              colors=["#f59e0b", "#fbbf24"])


def render_player(name: str, size=SIZE) -> Image.Image:
    if len(name) > 10:
        name = name[:9] + "…"
    return render_text_button(size, ["PLAYER", name], font_sizes=[12, 14],
                              colors=["#9ca3af", "white"])


def render_score(score: int, size=SIZE) -> Image.Image:
    return render_text_button(size, ["SCORE", str(score)], font_sizes=[14, 28],
                              colors=["#9ca3af", "#34d399"])


def render_lives(lives: int, max_lives: int, size=SIZE) -> Image.Image:
    lives = max(0, lives)
    hearts = "❤" * lives + "♡" * max(0, max_lives - lives)
    clr = "#ef4444" if lives <= 1 else "#f87171"
    return render_text_button(size, ["LIVES", hearts or "-"], font_sizes=[14, 18],
                              colors=["#9ca3af", clr])


def render_question_number(index: int, size=SIZE) -> Image.Image:
    return render_text_button(size, ["Q", str(index)], font_sizes=[12, 22],
                              colors=["#9ca3af", "#60a5fa"])


def render_time(time_left: int, duration: int, size=SIZE) -> Image.Image:
    """Seconds left with a bar. Red under ten seconds."""
    img = Image.new("RGB", size, BG_HUD)
    d = ImageDraw.Draw(img)
    fraction = time_left / duration if duration > 0 else 0.0
    color = "#ef4444" if time_left < 10 else "#22c55e"

    d.text((48, 14), "TIME", font=_font(12), fill="#9ca3af", anchor="mt")
    d.text((48, 32), str(time_left), font=_font(26), fill=color, anchor="mt")

    bar_x, bar_y, bar_w, bar_h = 10, 70, 76, 12
    d.rectangle([bar_x, bar_y, bar_x + bar_w, bar_y + bar_h], outline="#4b5563", width=1)
    fill_w = max(0, int(bar_w * fraction))
    if fill_w > 0:
        d.rectangle([bar_x + 1, bar_y + 1, bar_x + fill_w, bar_y + bar_h - 1], fill=color)
    return img


# ── play area ────────────────────────────────────────────────────────

def render_term(text: str, is_operator: bool = False, size=SIZE) -> Image.Image:
    """One element of the equation: a number, '+', '=' or '?'."""
    img = Image.new("RGB", size, BG_DARK)
    d = ImageDraw.Draw(img)
    if text == "?":
        d.text((48, 48), "?", font=_font(44), fill="#eab308", anchor="mm")
    elif is_operator:
        d.text((48, 48), text, font=_font(40), fill="#22c55e", anchor="mm")
    else:
        d.text((48, 48), text, font=_font(_fit(text, 36, 28, 22)), fill="white", anchor="mm")
    return img


def render_option(value: int, size=SIZE) -> Image.Image:
    """Answer button: white number on green."""
    text = str(value)
    img = Image.new("RGB", size, BG_OPTION)
    d = ImageDraw.Draw(img)
    d.rectangle([3, 3, 92, 92], outline="#059669", width=2)
    d.text((48, 48), text, font=_font(_fit(text, 34, 26, 20)), fill="white", anchor="mm")
    return img


def render_feedback(feedback: Feedback | None, size=SIZE) -> Image.Image:
    """Transient result of the last answer, e.g. 'FAST!' over '+15'."""
    if feedback is None:
        return render_empty(size=size)
    label, _, points = feedback.text.partition(" ")
    lines = [label, points] if points else [label]
    color = feedback_color(feedback.kind)
    return render_text_button(size, lines, bg_color=BG_DARK, font_sizes=[14, 22],
                              colors=[color, color])


def render_start(size=SIZE) -> Image.Image:
    return render_text_button(size, ["PRESS", "START"], bg_color="#065f46",
                              font_sizes=[16, 16], colors=["white", "#34d399"])


def render_game_over(size=SIZE) -> Image.Image:
    return render_text_button(size, ["GAME", "OVER"], bg_color="#7c2d12",
                              font_sizes=[16, 16], colors=["white", "#fca5a5"])


def render_final_score(score: int, correct: int, size=SIZE) -> Image.Image:
    return render_text_button(size, ["FINAL", str(score), f"{correct} right"],
                              font_sizes=[12, 28, 11],
                              colors=["#9ca3af", "#34d399", "#6b7280"])


def render_best_score(best: int, is_new: bool, save_score: bool = True,
                      size=SIZE) -> Image.Image:
    if not save_score:
        return render_text_button(size, ["PRACTICE", "not saved"], font_sizes=[13, 11],
                                  colors=["#fbbf24", "#9ca3af"])
    header = "NEW!" if is_new else "BEST"
    hdr_clr = "#fbbf24" if is_new else "#9ca3af"
    label = str(best) if best > 0 else "--"
    return render_text_button(size, [header, label], font_sizes=[14, 28],
                              colors=[hdr_clr, "#34d399"])
