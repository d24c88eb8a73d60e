#!/usr/bin/env python3
"""
Create example strike PNGs for the drum synthesizer.

Brightness is displacement: black is rest, white is full strike amplitude.
The image is mapped to the whole plate for rectangular drums and to the
inscribed disc for circular drums.

Usage:
    python create_strike.py center --output strikes/center.png
    python create_strike.py off_center --output strikes/off_center.png
    python create_strike.py double --output strikes/double.png
"""

import argparse
import os
from PIL import Image, ImageDraw, ImageFilter


REST = 0
FULL = 255


def _blob(size: int, cx: float, cy: float, radius: float, blur: float) -> Image.Image:
    img = Image.new('L', (size, size), REST)
    draw = ImageDraw.Draw(img)
    draw.ellipse([cx - radius, cy - radius, cx + radius, cy + radius], fill=FULL)
    return img.filter(ImageFilter.GaussianBlur(blur))


def create_center_strike(size: int = 128) -> Image.Image:
    """Soft mallet hit in the middle of the head."""
    return _blob(size, size / 2, size / 2, size / 10, size / 20)


def create_off_center_strike(size: int = 128) -> Image.Image:
    """Hit halfway between center and rim; excites the asymmetric modes."""
    return _blob(size, size * 0.7, size * 0.4, size / 12, size / 24)


def create_edge_strike(size: int = 128) -> Image.Image:
    """Narrow hit close to the rim."""
    return _blob(size, size * 0.85, size / 2, size / 20, size / 40)


def create_double_strike(size: int = 128) -> Image.Image:
    """Two simultaneous hits (flam without the delay)."""
    img = Image.new('L', (size, size), REST)
    draw = ImageDraw.Draw(img)
    r = size / 14
    for cx, cy in [(size * 0.35, size * 0.5), (size * 0.65, size * 0.5)]:
        draw.ellipse([cx - r, cy - r, cx + r, cy + r], fill=FULL)
    return img.filter(ImageFilter.GaussianBlur(size / 28))


def create_ring_strike(size: int = 128) -> Image.Image:
    """Ring-shaped displacement, like a brush swept around the head."""
    img = Image.new('L', (size, size), REST)
    draw = ImageDraw.Draw(img)
    r = size * 0.3
    c = size / 2
    draw.ellipse([c - r, c - r, c + r, c + r], outline=FULL, width=max(1, size // 16))
    return img.filter(ImageFilter.GaussianBlur(size / 32))


STRIKE_TYPES = {
    'center': create_center_strike,
    'off_center': create_off_center_strike,
    'edge': create_edge_strike,
    'double': create_double_strike,
    'ring': create_ring_strike,
}


def main():
    parser = argparse.ArgumentParser(description='Create example strike PNGs')
    parser.add_argument('strike_type', choices=list(STRIKE_TYPES.keys()) + ['all'],
                        help='Type of strike to create')
    parser.add_argument('-o', '--output', default=None,
                        help='Output PNG path (default: strikes/<type>.png)')
    parser.add_argument('--size', type=int, default=128,
                        help='Image size in pixels (default: 128)')

    args = parser.parse_args()

    if args.strike_type == 'all':
        os.makedirs('strikes', exist_ok=True)
        for name, create_fn in STRIKE_TYPES.items():
            img = create_fn(args.size)
            path = f'strikes/{name}.png'
            img.save(path)
            print(f"Created {path} ({img.width}x{img.height})")
    else:
        create_fn = STRIKE_TYPES[args.strike_type]
        img = create_fn(args.size)

        output = args.output or f'strikes/{args.strike_type}.png'
        output_dir = os.path.dirname(output)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)

        img.save(output)
        print(f"Created {output} ({img.width}x{img.height})")


if __name__ == '__main__':
    main()
