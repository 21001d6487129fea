"""
Solve a folder of labelled captchas and report accuracy.

The expected code of every image is its file name without extension
(e.g. 'KXMRTA.png' -> 'KXMRTA').

Usage:
    python batch_solve.py                              # uses default 'captchas'
    python batch_solve.py -d captchas/test --model best_char_recognition_model.pth
    python batch_solve.py -d captchas/test --threshold 0.9 --save --limit 50

Outputs:
- CSV summary with one row per image
- Normalized glyph images per captcha (with --save)
- Sequence and character accuracy printed at the end
"""

import argparse
import csv
import logging
import time
from pathlib import Path

import cv2
from tqdm import tqdm

from char_classifier import CnnCharClassifier
from solver import CaptchaSolver
from solver_config import DEFAULT_CONFIDENCE, DEFAULT_MODEL_PATH, SolverConfig

IMAGE_EXTS = {'.png', '.jpg', '.jpeg', '.bmp', '.gif'}
SUMMARY_COLS = ['image', 'expected', 'predicted', 'success', 'time_s', 'status', 'message']


def find_images(folder: Path):
    """Find all image files in folder"""
    return sorted(p for p in folder.iterdir() if p.is_file() and p.suffix.lower() in IMAGE_EXTS)


def save_glyphs(solver, img_path: Path, out_dir: Path):
    characters_result = solver.get_character_images()
    if not characters_result.success:
        return
    glyph_dir = out_dir / img_path.stem
    glyph_dir.mkdir(parents=True, exist_ok=True)
    for i, glyph in enumerate(characters_result.get_result()):
        cv2.imwrite(str(glyph_dir / f"char{i}.png"), glyph)


def process_folder(folder: Path, classifier, output_csv: Path, config=None,
                   threshold=DEFAULT_CONFIDENCE, glyph_dir=None, limit=None, progress=True):
    """
    Solve every captcha in `folder`, write the CSV summary.
    Returns (sequence_accuracy, character_accuracy, total) in percent.
    """
    images = find_images(folder)
    if limit:
        images = images[:limit]

    summary = []
    total = 0
    correct = 0
    char_total = 0
    char_correct = 0

    iterator = tqdm(images, desc="Solving") if progress else images
    for img_path in iterator:
        expected = img_path.stem
        total += 1
        t0 = time.time()
        try:
            solver = CaptchaSolver(img_path, classifier=classifier, config=config)
            result = solver.solve(threshold)
            elapsed = time.time() - t0
            predicted = result.get_result() or ''

            if not result.success:
                status = 'FAILED'
            elif predicted == expected:
                status = 'OK'
                correct += 1
            else:
                status = 'MISMATCH'

            # Character-level accuracy
            char_total += len(expected)
            char_correct += sum(1 for a, b in zip(expected, predicted) if a == b)

            message = result.message_stack() or result.message
            summary.append([img_path.name, expected, predicted, result.success,
                            f"{elapsed:.3f}", status, message.strip()])

            if glyph_dir is not None:
                save_glyphs(solver, img_path, glyph_dir)

        except Exception as e:
            elapsed = time.time() - t0
            char_total += len(expected)
            summary.append([img_path.name, expected, '', False, f"{elapsed:.3f}", 'ERROR', str(e)])
            print(f"[ERROR] {img_path.name}: {e}")

    output_csv.parent.mkdir(parents=True, exist_ok=True)
    with output_csv.open('w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(SUMMARY_COLS)
        writer.writerows(summary)

    seq_acc = 100 * correct / total if total > 0 else 0.0
    char_acc = 100 * char_correct / char_total if char_total > 0 else 0.0
    return seq_acc, char_acc, total


def main():
    parser = argparse.ArgumentParser(description='Solve a folder of labelled captchas')
    parser.add_argument('-d', '--dir', type=str, default='captchas',
                        help='Folder to process (default: captchas)')
    parser.add_argument('-o', '--out', type=str, default='solve_output',
                        help='Output root folder (default: solve_output)')
    parser.add_argument('--model', type=str, default=DEFAULT_MODEL_PATH,
                        help='Path to trained model weights')
    parser.add_argument('--threshold', type=float, default=DEFAULT_CONFIDENCE,
                        help='Minimum confidence to accept a character')
    parser.add_argument('--max-width', type=int, default=33, help='Maximum character width')
    parser.add_argument('--min-width', type=int, default=14, help='Minimum first character width')
    parser.add_argument('--split-margin', type=int, default=5,
                        help='Columns skipped on each side when splitting wide spans')
    parser.add_argument('-s', '--save', action='store_true',
                        help='Save normalized glyphs to disk')
    parser.add_argument('--limit', type=int, default=None,
                        help='Limit number of images (for quick testing)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    folder = Path(args.dir)
    if not folder.exists() or not folder.is_dir():
        print(f"[ERROR] Folder {folder} does not exist or is not a directory")
        return

    output_root = Path(args.out)
    config = SolverConfig(max_char_width=args.max_width, min_char_width=args.min_width,
                          split_margin=args.split_margin, model_path=args.model)

    print(f"\n{'='*70}")
    print("Solving Captchas")
    print(f"  Input folder: {folder.resolve()}")
    print(f"  Output folder: {output_root.resolve()}")
    print(f"  Model: {args.model}")
    print(f"  Threshold: {args.threshold}")
    print(f"{'='*70}\n")

    classifier = CnnCharClassifier(args.model)
    csv_path = output_root / 'solve_summary.csv'
    start = time.time()
    seq_acc, char_acc, total = process_folder(
        folder, classifier, csv_path, config=config, threshold=args.threshold,
        glyph_dir=output_root / 'glyphs' if args.save else None, limit=args.limit)
    elapsed = time.time() - start

    print('\n' + '='*70)
    print("SUMMARY:")
    print(f"  Total images: {total}")
    print(f"  Sequence Accuracy: {seq_acc:.2f}%")
    print(f"  Character Accuracy: {char_acc:.2f}%")
    print(f"  Total time: {elapsed:.2f}s")
    print(f"  Summary CSV: {csv_path.resolve()}")
    print('='*70)


if __name__ == '__main__':
    main()
