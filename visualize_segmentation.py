"""
Show where the column segmenter cuts a captcha.

Usage:
    python visualize_segmentation.py captchas/ABCDEF.png
    python visualize_segmentation.py captchas/ABCDEF.png --save spans.png
"""

import argparse
from pathlib import Path

import matplotlib.pyplot as plt

from preprocess import load_binarized
from segmentation import find_character_columns
from solver_config import SolverConfig


def plot_spans(binary, spans, title=None, save_path=None, show=True):
    """Binarized captcha with one shaded band per character span."""
    fig, ax = plt.subplots(figsize=(10, 4))
    ax.imshow(binary, cmap='gray', vmin=0, vmax=255)

    colors = plt.cm.tab10.colors
    for i, (start, end) in enumerate(spans):
        ax.axvspan(start - 0.5, end - 0.5, color=colors[i % len(colors)], alpha=0.3)
        ax.text((start + end) / 2, -2, str(i), ha='center', va='bottom', fontsize=9)

    ax.set_title(title or f"{len(spans)} character spans")
    ax.axis('off')

    if save_path:
        fig.savefig(save_path, bbox_inches='tight')
    if show:
        plt.show()
    return fig


def main():
    parser = argparse.ArgumentParser(description='Visualize character spans of a captcha')
    parser.add_argument('image', type=str, help='Captcha image path')
    parser.add_argument('--save', type=str, default=None, help='Save the figure instead of only showing it')
    parser.add_argument('--max-width', type=int, default=33, help='Maximum character width')
    parser.add_argument('--split-margin', type=int, default=5, help='Divider search margin')
    args = parser.parse_args()

    config = SolverConfig(max_char_width=args.max_width, split_margin=args.split_margin)
    binary = load_binarized(args.image, config.ink_cutoff)
    columns_result = find_character_columns(binary, config)
    if not columns_result.success:
        print(f"[ERROR] {columns_result.message}")
        return

    spans = columns_result.get_result()
    print(f"[INFO] {len(spans)} spans: {spans}")
    plot_spans(binary, spans, title=Path(args.image).name, save_path=args.save, show=args.save is None)


if __name__ == '__main__':
    main()
