"""Rasterizer — composition Node trees to RGB numpy frames.

Walks the resolved output of Composition.render_frame() and paints it
with Pillow and numpy. Each element is rendered to an RGBA patch, then
alpha-blended onto the frame at its position, clipped to the frame
bounds. Children paint in order, so later nodes land on top.

Transforms compose down the tree:
  - group x/y + translate_x/translate_y move the origin of its children,
  - group scale multiplies every length below it,
  - group opacity multiplies the opacity of everything below it.
An element's own scale is applied around its center.

This module is the boundary between the frame-pure core and pixels; it
does not look at frames, only at already-resolved props.
"""

import numpy as np
from PIL import Image, ImageDraw

from .common import load_font, load_image, to_rgb
from .scene import Node


DEFAULT_FONT_SIZE = 22
DEFAULT_TEXT_COLOR = (224, 232, 255)
DEFAULT_CARET_COLOR = (74, 222, 128)
CARET_WIDTH_FRAC = 0.45          # caret width as fraction of font size
CARET_HEIGHT_FRAC = 1.1          # caret height as fraction of font size


def rasterize(root: Node, resolve_asset=None) -> np.ndarray:
    """Paint a composition node into an (height, width, 3) uint8 frame.

    Args:
        root: Node returned by Composition.render_frame().
        resolve_asset: Optional callable mapping an image src to a path.

    Returns:
        numpy array of shape (height, width, 3), dtype uint8.
    """
    props = root.props
    width, height = props["width"], props["height"]
    background = to_rgb(props.get("background", (0, 0, 0)))
    canvas = np.empty((height, width, 3), dtype=np.float32)
    canvas[:] = background

    resolve_asset = resolve_asset or str
    for child in root.children:
        _draw_node(canvas, child, 0.0, 0.0, 1.0, 1.0, resolve_asset)

    return np.clip(np.rint(canvas), 0, 255).astype(np.uint8)


# ── Tree walk ────────────────────────────────────────────────────


def _clamp_opacity(value) -> float:
    return max(0.0, min(1.0, float(value)))


def _draw_node(canvas, node, ox, oy, scale, opacity, resolve_asset):
    props = node.props

    if node.kind == "sequence":
        for child in node.children:
            _draw_node(canvas, child, ox, oy, scale, opacity, resolve_asset)
        return

    node_opacity = opacity * _clamp_opacity(props.get("opacity", 1.0))
    node_scale = scale * float(props.get("scale", 1.0))
    if node_opacity <= 0 or node_scale <= 0:
        return

    x = ox + (props.get("x", 0) + props.get("translate_x", 0)) * scale
    y = oy + (props.get("y", 0) + props.get("translate_y", 0)) * scale

    if node.kind == "group":
        if "background" in props and "width" in props and "height" in props:
            fill = _box_patch(
                props["width"] * node_scale, props["height"] * node_scale,
                props["background"], props.get("radius", 0) * node_scale,
            )
            blend_patch(canvas, fill, x, y, node_opacity)
        for child in node.children:
            _draw_node(canvas, child, x, y, node_scale, node_opacity, resolve_asset)
        return

    patch = _render_patch(node, node_scale, resolve_asset)
    if patch is None:
        return

    # Element scale pivots on the center of its unscaled box.
    own_scale = float(props.get("scale", 1.0))
    ph, pw = patch.shape[:2]
    x += (pw / own_scale - pw) / 2
    y += (ph / own_scale - ph) / 2
    blend_patch(canvas, patch, x, y, node_opacity)


# ── Patch rendering ──────────────────────────────────────────────


def _render_patch(node: Node, scale: float, resolve_asset) -> np.ndarray | None:
    props = node.props
    if node.kind == "box":
        return _box_patch(
            props.get("width", 0) * scale, props.get("height", 0) * scale,
            props.get("color", (255, 255, 255)), props.get("radius", 0) * scale,
        )
    if node.kind == "text":
        return _text_patch(
            str(props["text"]),
            props.get("font_size", DEFAULT_FONT_SIZE) * scale,
            props.get("color", DEFAULT_TEXT_COLOR),
        )
    if node.kind == "typed_text":
        return _typed_text_patch(props, scale)
    if node.kind == "image":
        return _image_patch(props, scale, resolve_asset)
    raise ValueError(f"Cannot rasterize node kind '{node.kind}'")


def _box_patch(width, height, color, radius=0) -> np.ndarray | None:
    w, h = int(round(width)), int(round(height))
    if w <= 0 or h <= 0:
        return None
    img = Image.new("RGBA", (w, h), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    fill = (*to_rgb(color), 255)
    if radius > 0:
        draw.rounded_rectangle([(0, 0), (w - 1, h - 1)], radius=int(round(radius)), fill=fill)
    else:
        draw.rectangle([(0, 0), (w - 1, h - 1)], fill=fill)
    return np.array(img)


def _text_image(text: str, font_size: float, color) -> Image.Image | None:
    if not text:
        return None
    font = load_font(max(1, int(round(font_size))))
    draw_tmp = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    left, top, right, bottom = draw_tmp.textbbox((0, 0), text, font=font)
    w, h = right - left, bottom - top
    if w <= 0 or h <= 0:
        return None
    img = Image.new("RGBA", (w, h), (0, 0, 0, 0))
    ImageDraw.Draw(img).text((-left, -top), text, fill=(*to_rgb(color), 255), font=font)
    return img


def _text_patch(text: str, font_size: float, color) -> np.ndarray | None:
    img = _text_image(text, font_size, color)
    return None if img is None else np.array(img)


def _typed_text_patch(props: dict, scale: float) -> np.ndarray | None:
    """Revealed text followed by a block caret while typing is in progress."""
    font_size = props.get("font_size", DEFAULT_FONT_SIZE) * scale
    text_img = _text_image(props["text"], font_size, props.get("color", DEFAULT_TEXT_COLOR))
    if not props.get("caret"):
        return None if text_img is None else np.array(text_img)

    caret_w = max(1, int(round(font_size * CARET_WIDTH_FRAC)))
    caret_h = max(1, int(round(font_size * CARET_HEIGHT_FRAC)))
    gap = max(1, int(round(scale)))
    text_w = text_img.width + gap if text_img is not None else 0
    text_h = text_img.height if text_img is not None else 0
    height = max(caret_h, text_h)

    img = Image.new("RGBA", (text_w + caret_w, height), (0, 0, 0, 0))
    if text_img is not None:
        img.alpha_composite(text_img, dest=(0, height - text_h))
    caret_color = (*to_rgb(props.get("caret_color", DEFAULT_CARET_COLOR)), 255)
    ImageDraw.Draw(img).rectangle(
        [(text_w, height - caret_h), (text_w + caret_w - 1, height - 1)],
        fill=caret_color,
    )
    return np.array(img)


def _image_patch(props: dict, scale: float, resolve_asset) -> np.ndarray | None:
    img = load_image(resolve_asset(props["src"]))
    src_w, src_h = img.size
    width = props.get("width")
    height = props.get("height")
    # Missing dimensions follow the source aspect ratio.
    if width is None and height is None:
        width, height = src_w, src_h
    elif width is None:
        width = height * src_w / src_h
    elif height is None:
        height = width * src_h / src_w

    w, h = int(round(width * scale)), int(round(height * scale))
    if w <= 0 or h <= 0:
        return None
    if (w, h) != img.size:
        img = img.resize((w, h), resample=Image.LANCZOS)
    return np.array(img)


# ── Compositing ──────────────────────────────────────────────────


def blend_patch(canvas: np.ndarray, patch, x: float, y: float, opacity: float = 1.0) -> None:
    """Alpha-blend an RGBA patch onto a float canvas in place, clipped to bounds."""
    if patch is None:
        return
    frame_h, frame_w = canvas.shape[:2]
    patch_h, patch_w = patch.shape[:2]
    x, y = int(round(x)), int(round(y))

    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + patch_w, frame_w), min(y + patch_h, frame_h)
    if x0 >= x1 or y0 >= y1:
        return

    sub = patch[y0 - y:y1 - y, x0 - x:x1 - x]
    alpha = sub[:, :, 3:4].astype(np.float32) / 255.0 * opacity
    rgb = sub[:, :, :3].astype(np.float32)
    dest = canvas[y0:y1, x0:x1]
    canvas[y0:y1, x0:x1] = dest * (1 - alpha) + rgb * alpha
