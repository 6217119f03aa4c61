"""
Command Line Interface for paragraph OCR
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .pipeline import Ocr


def main(argv=None):
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description="Extract text lines and paragraphs from images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Print paragraphs of an image as JSON
  paragraph-ocr page.png

  # Save results for several images
  paragraph-ocr a.png b.jpg -o results.json

  # Japanese text, individual lines only
  paragraph-ocr scan.png --language ja --no-group
        """
    )

    # Input/Output
    parser.add_argument(
        'input',
        nargs='*',
        help='Input image file path(s)'
    )
    parser.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Output JSON file path (default: print to stdout)'
    )

    # Processing options
    parser.add_argument(
        '--language',
        default='en',
        help='Recognition language code (default: en)'
    )
    parser.add_argument(
        '--no-group',
        action='store_true',
        help='Do not group lines into paragraphs'
    )
    parser.add_argument(
        '--detection-threshold',
        type=float,
        default=None,
        help='Probability map binarization threshold (default: 0.1)'
    )
    parser.add_argument(
        '--confidence-threshold',
        type=float,
        default=None,
        help='Minimum line confidence (default: 0.5)'
    )
    parser.add_argument(
        '--unclip-ratio',
        type=float,
        default=None,
        help='Text box expansion ratio (default: 1.5)'
    )

    # Model options
    parser.add_argument(
        '--models-dir',
        type=str,
        default=None,
        help='Directory with model and dictionary files'
    )
    parser.add_argument(
        '--list-languages',
        action='store_true',
        help='List supported languages and exit'
    )

    # Verbosity
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )

    args = parser.parse_args(argv)

    if args.list_languages:
        for code, lang in Ocr.available_languages().items():
            print(f"{code:<6} {lang.name}")
        return 0

    if not args.input:
        parser.error("at least one input image is required")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    input_paths = [Path(p) for p in args.input]
    for path in input_paths:
        if not path.exists():
            print(f"Error: Input file '{path}' not found", file=sys.stderr)
            return 1

    try:
        ocr = Ocr.create(
            language=args.language,
            detection_threshold=args.detection_threshold,
            confidence_threshold=args.confidence_threshold,
            unclip_ratio=args.unclip_ratio,
            models_dir=args.models_dir,
        )

        results = []
        for path in input_paths:
            if args.verbose:
                print(f"Processing: {path.name}", file=sys.stderr)
            results.append(ocr.detect(str(path), grouped=not args.no_group))

        payload = results[0] if len(results) == 1 else results
        text = json.dumps(payload, ensure_ascii=False, indent=2)

        if args.output is None:
            print(text)
        else:
            Path(args.output).write_text(text, encoding='utf-8')
            print(f"Saved to: {args.output}")

        return 0

    except KeyboardInterrupt:
        print("\n\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"\nError: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
