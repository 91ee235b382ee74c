"""
PNG snapshots of bracket sections and group standings tables.
"""
from io import BytesIO
from typing import List, Dict

from PIL import Image, ImageDraw, ImageFont

PADDING = 24
BACKGROUND = (28, 16, 8)
HEADER_FILL = (254, 243, 199)
HEADER_TEXT = (120, 53, 15)
CARD_FILL = (255, 251, 235)
CARD_BORDER = (217, 119, 6)
WINNER_RING = (250, 204, 21)
WINNER_TEXT = (133, 77, 14)
TEAM_TEXT = (120, 53, 15)
NOTE_TEXT = (253, 230, 138)
LIVE_FILL = (254, 226, 226)
LIVE_TEXT = (153, 27, 27)
CONNECTOR = (210, 105, 30)
CONNECTOR_WIDTH = 3
TITLE_TEXT = (255, 255, 255)
ROW_RULE = (146, 64, 14)


def _font(size: int):
    return ImageFont.load_default(size=size)


def _ellipsize(draw: ImageDraw.ImageDraw, text: str, font, max_width: float) -> str:
    if draw.textlength(text, font=font) <= max_width:
        return text
    while text and draw.textlength(text + '…', font=font) > max_width:
        text = text[:-1]
    return text + '…'


def _to_png(image: Image.Image) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format='PNG')
    return buffer.getvalue()


def _draw_card(draw, card: Dict, ox: int, oy: int, width: int, height: int, fonts) -> None:
    font_main, font_small = fonts
    x0, y0 = ox + card['x'], oy + card['y']
    row_h = (height - 12) / 2

    if card['note']:
        draw.text((x0 + width / 2, y0 - 4), card['note'], font=font_small, fill=NOTE_TEXT, anchor='md')

    rows = (
        (card['team1'], card['score1'], card['team1_winner']),
        (card['team2'], card['score2'], card['team2_winner']),
    )
    for index, (name, score, is_winner) in enumerate(rows):
        ry0 = y0 + index * (row_h + 4)
        ry1 = ry0 + row_h
        outline = WINNER_RING if is_winner else CARD_BORDER
        draw.rounded_rectangle([x0, ry0, x0 + width, ry1], radius=12, fill=CARD_FILL,
                               outline=outline, width=3 if is_winner else 1)
        text_fill = WINNER_TEXT if is_winner else TEAM_TEXT
        label = _ellipsize(draw, name, font_main, width - 70)
        draw.text((x0 + 14, ry0 + row_h / 2), label, font=font_main, fill=text_fill, anchor='lm')
        draw.text((x0 + width - 14, ry0 + row_h / 2), score, font=font_main, fill=text_fill, anchor='rm')

    if card['live']:
        by0 = y0 + height - 4
        draw.rounded_rectangle([x0, by0, x0 + width, by0 + 22], radius=10, fill=LIVE_FILL, outline=LIVE_TEXT)
        draw.text((x0 + width / 2, by0 + 11), 'LIVE MATCH', font=font_small, fill=LIVE_TEXT, anchor='mm')


def render_section_png(view: Dict) -> bytes:
    """
    Paint a bracket section view (see render.build_section_view) as a PNG.

    Returns the encoded image bytes.
    """
    content_height = max(view['height'], view['min_height'])
    title_height = 40
    width = int(view['width'] + 2 * PADDING)
    height = int(content_height + 2 * PADDING + title_height)
    image = Image.new('RGB', (width, height), BACKGROUND)
    draw = ImageDraw.Draw(image)
    fonts = (_font(16), _font(12))

    draw.text((PADDING, PADDING), view['title'], font=_font(22), fill=TITLE_TEXT)
    ox, oy = PADDING, PADDING + title_height

    for connector in view['connectors']:
        for x1, y1, x2, y2 in connector['segments']:
            draw.line([(ox + x1, oy + y1), (ox + x2, oy + y2)], fill=CONNECTOR, width=CONNECTOR_WIDTH)

    for header in view['headers']:
        hx = ox + header['x']
        draw.rounded_rectangle([hx, oy, hx + view['card_width'], oy + 36], radius=12, fill=HEADER_FILL)
        draw.text((hx + 14, oy + 18), header['label'], font=fonts[0], fill=HEADER_TEXT, anchor='lm')

    for card in view['cards']:
        _draw_card(draw, card, ox, oy, view['card_width'], view['match_height'], fonts)

    return _to_png(image)


STANDINGS_COLUMNS = (
    ('#', 36),
    ('Team', 260),
    ('M', 44),
    ('W', 44),
    ('D', 44),
    ('L', 44),
    ('BD', 56),
    ('Pts', 56),
)


def render_standings_png(title: str, standings: List[Dict]) -> bytes:
    """Paint a group standings table as a PNG and return the encoded bytes."""
    row_h = 34
    title_height = 44
    table_width = sum(w for _, w in STANDINGS_COLUMNS)
    width = table_width + 2 * PADDING
    height = 2 * PADDING + title_height + row_h * (len(standings) + 1)
    image = Image.new('RGB', (width, height), BACKGROUND)
    draw = ImageDraw.Draw(image)
    font_main, font_bold = _font(15), _font(16)

    draw.text((PADDING, PADDING), title, font=_font(22), fill=TITLE_TEXT)
    top = PADDING + title_height
    draw.rounded_rectangle([PADDING, top, PADDING + table_width, top + row_h], radius=10, fill=HEADER_FILL)

    rows = [[label for label, _ in STANDINGS_COLUMNS]]
    for index, standing in enumerate(standings, start=1):
        diff = standing['ball_diff']
        rows.append([
            str(index), standing['team_name'], str(standing['played']), str(standing['won']),
            str(standing['drawn']), str(standing['lost']), f"+{diff}" if diff > 0 else str(diff),
            str(standing['points']),
        ])

    for row_index, row in enumerate(rows):
        y = top + row_index * row_h + row_h / 2
        x = PADDING
        fill = HEADER_TEXT if row_index == 0 else CARD_FILL
        for (label, col_w), value in zip(STANDINGS_COLUMNS, row):
            font = font_bold if row_index == 0 else font_main
            if label == 'Team':
                draw.text((x + 8, y), _ellipsize(draw, value, font, col_w - 16), font=font, fill=fill, anchor='lm')
            else:
                draw.text((x + col_w / 2, y), value, font=font, fill=fill, anchor='mm')
            x += col_w
        if row_index > 0:
            rule_y = top + (row_index + 1) * row_h
            draw.line([(PADDING, rule_y), (PADDING + table_width, rule_y)], fill=ROW_RULE, width=1)

    return _to_png(image)
