from __future__ import annotations

import argparse
import logging

from shadematch.catalog import load_catalog
from shadematch.config import EngineConfig
from shadematch.engine import ShadeMatchingEngine
from shadematch.io import read_image_rgb, result_json, write_result_json
from shadematch.models import UserPreferences
from shadematch.scoring import DEFAULT_MAX_BRANDS


def _add_matching_arguments(command: argparse.ArgumentParser) -> None:
    command.add_argument(
        "--catalog", required=True, help="Path to a shade catalog (.csv/.json)."
    )
    command.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of results to return (default 20).",
    )
    command.add_argument(
        "--skin-type",
        default=None,
        choices=["oily", "dry", "combination", "sensitive", "normal"],
        help="Skin type used to weight product finishes.",
    )
    command.add_argument("--coverage", default=None, help="Preferred coverage.")
    command.add_argument("--finish", default=None, help="Preferred finish.")
    command.add_argument(
        "--weights",
        default="standard",
        choices=["standard", "enhanced"],
        help="Scoring weight preset.",
    )
    command.add_argument(
        "--strict-scale",
        action="store_true",
        help="Use the strict match percentage scale (100 - 5 * dE).",
    )
    command.add_argument(
        "--include-unavailable",
        action="store_true",
        help="Score shades flagged as unavailable.",
    )
    command.add_argument(
        "--strict-catalog",
        action="store_true",
        help="Fail on malformed catalog rows instead of skipping them.",
    )
    command.add_argument(
        "--out",
        default=None,
        help="Optional JSON output path. If omitted, prints JSON to stdout.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shadematch",
        description="Perceptual skin tone analysis and foundation shade matching.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging."
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    match = subparsers.add_parser(
        "match", help="Rank catalog shades against a single skin tone."
    )
    match.add_argument("--hex", required=True, help="Target skin tone as hex.")
    _add_matching_arguments(match)
    match.add_argument(
        "--diversify",
        action="store_true",
        help="Keep one shade per product and lead with one product per brand.",
    )
    match.add_argument(
        "--contour",
        action="store_true",
        help="Also suggest a deeper contour shade from the top match's product.",
    )

    dual = subparsers.add_parser(
        "dual",
        help="Pair shades for a primary and secondary tone and group them by brand.",
    )
    dual.add_argument("--primary", required=True, help="Primary (main) tone as hex.")
    dual.add_argument(
        "--secondary", required=True, help="Secondary (contour) tone as hex."
    )
    _add_matching_arguments(dual)

    brands = subparsers.add_parser(
        "brands", help="Top matches for a skin tone, grouped by brand."
    )
    brands.add_argument("--hex", required=True, help="Target skin tone as hex.")
    _add_matching_arguments(brands)

    ladder = subparsers.add_parser(
        "ladder", help="List a brand's shades from lightest to deepest."
    )
    ladder.add_argument(
        "--catalog", required=True, help="Path to a shade catalog (.csv/.json)."
    )
    ladder.add_argument("--brand", required=True, help="Brand name as in the catalog.")
    ladder.add_argument("--product", default=None, help="Restrict to one product line.")
    ladder.add_argument(
        "--strict-catalog",
        action="store_true",
        help="Fail on malformed catalog rows instead of skipping them.",
    )
    ladder.add_argument(
        "--out",
        default=None,
        help="Optional JSON output path. If omitted, prints JSON to stdout.",
    )

    sample = subparsers.add_parser(
        "sample",
        help="Sample primary and secondary skin tones from a face image.",
    )
    sample.add_argument("--image", required=True, help="Path or URL to the input image.")
    sample.add_argument(
        "--extremes",
        action="store_true",
        help="Also report the lightest and darkest skin tones in the image.",
    )
    sample.add_argument(
        "--out",
        default=None,
        help="Optional JSON output path. If omitted, prints JSON to stdout.",
    )

    return parser


def _engine_from_args(args: argparse.Namespace) -> ShadeMatchingEngine:
    config = EngineConfig.from_names(
        weights=args.weights,
        match_scale="strict" if args.strict_scale else "standard",
        include_unavailable=bool(args.include_unavailable),
    )
    return ShadeMatchingEngine(config)


def _preferences_from_args(args: argparse.Namespace) -> UserPreferences | None:
    preferences = UserPreferences(
        skin_type=args.skin_type,
        preferred_coverage=args.coverage,
        preferred_finish=args.finish,
    )
    return None if preferences.is_empty else preferences


def _emit(result: object, out: str | None) -> None:
    if out:
        write_result_json(result, out)
    else:
        print(result_json(result))


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "match":
        engine = _engine_from_args(args)
        catalog = load_catalog(args.catalog, strict=args.strict_catalog)
        result = engine.match(
            args.hex,
            catalog,
            preferences=_preferences_from_args(args),
            limit=args.limit,
            diversify=args.diversify,
        )
        if not args.contour:
            _emit(result, args.out)
            return
        payload = result.to_dict()
        contour = engine.contour_shade(result.matches[0], catalog) if result.matches else None
        payload["contour"] = None if contour is None else contour.to_dict()
        _emit(payload, args.out)
        return

    if args.command == "dual":
        engine = _engine_from_args(args)
        catalog = load_catalog(args.catalog, strict=args.strict_catalog)
        result = engine.match_dual(
            args.primary,
            args.secondary,
            catalog,
            preferences=_preferences_from_args(args),
            limit=args.limit,
        )
        _emit(result, args.out)
        return

    if args.command == "brands":
        engine = _engine_from_args(args)
        catalog = load_catalog(args.catalog, strict=args.strict_catalog)
        result = engine.recommend_by_brand(
            args.hex,
            catalog,
            preferences=_preferences_from_args(args),
            max_brands=args.limit or DEFAULT_MAX_BRANDS,
        )
        _emit(result, args.out)
        return

    if args.command == "ladder":
        engine = ShadeMatchingEngine()
        catalog = load_catalog(args.catalog, strict=args.strict_catalog)
        steps = engine.shade_ladder(catalog, args.brand, args.product)
        payload = {
            "brand": args.brand,
            "product": args.product,
            "shades": [step.to_dict() for step in steps],
        }
        _emit(payload, args.out)
        return

    if args.command == "sample":
        engine = ShadeMatchingEngine()
        image = read_image_rgb(args.image)
        primary, secondary = engine.sample_image(image)
        analysis = engine.analyze_samples(primary, secondary)
        payload = {
            "primary_sample": primary.to_dict(),
            "secondary_sample": secondary.to_dict(),
            "analysis": analysis.to_dict(),
        }
        if args.extremes:
            lightest, darkest = engine.sample_extremes(image)
            payload["lightest"] = lightest.to_dict()
            payload["darkest"] = darkest.to_dict()
        _emit(payload, args.out)
        return

    parser.error("unknown command")


if __name__ == "__main__":
    main()
