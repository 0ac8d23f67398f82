#!/usr/bin/env python3
"""Ad hoc query runner for the Bedrock recipe pipeline.

Run one invocation directly, without the GraphQL resolver in front of it.

Usage:
    python query.py tomato basil mozzarella
    python query.py "chicken, rice, soy sauce"          # comma-separated also works
    python query.py --debug tomato basil                # Show full JSON result
    python query.py --save-image dish.png tomato basil  # Write the generated photo

Credentials come from AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY / AWS_SESSION_TOKEN
(environment or .env).
"""

import asyncio
import base64
import binascii
import sys
from pathlib import Path
from typing import Optional

import filetype
from rich.console import Console
from rich.markdown import Markdown

from bedrock_chef.agents.chef import generate_recipe
from bedrock_chef.models.models import FinalResult
from bedrock_chef.utils.logger import logger

console = Console()

USAGE = 'Usage: python query.py [--debug] [--save-image PATH] <ingredient> [<ingredient> ...]'


def parse_ingredients(args: list[str]) -> list[str]:
    """Split every argument on commas so quoted lists and separate words both work."""
    return [part for arg in args for part in arg.split(",")]


def save_image(result: FinalResult, image_path: str) -> bool:
    """Decode the base64 image and write it to disk.

    Returns:
        True if written, False if there is no image or the bytes are not a PNG.
    """
    if not result.image_base64:
        console.print("[yellow]No image to save[/yellow]")
        return False

    try:
        image_bytes = base64.b64decode(result.image_base64, validate=True)
    except (binascii.Error, ValueError) as e:
        console.print(f"[red]✗ Image payload is not valid base64: {e}[/red]")
        return False

    kind = filetype.guess(image_bytes)
    if kind is None or kind.mime != result.image_mime_type:
        console.print(f"[red]✗ Image bytes do not match {result.image_mime_type} (detected: {kind and kind.mime})[/red]")
        return False

    Path(image_path).write_bytes(image_bytes)
    console.print(f"[green]✓ Saved image to {image_path} ({len(image_bytes) / 1024:.1f} KB)[/green]")
    return True


def run_query(ingredients: list[str], debug: bool = False, image_path: Optional[str] = None) -> int:
    """Execute one invocation and print the result.

    Args:
        ingredients: Raw ingredient strings.
        debug: If True, display the full result as JSON (image payload elided).
        image_path: Optional file to write the generated image to.

    Returns:
        Process exit code: 0 on full success, 1 if any error was reported.
    """
    logger.info(f"Running query: {', '.join(ingredients)}")
    result = asyncio.run(generate_recipe(ingredients))
    console.print()

    if debug:
        console.print("[bold cyan]Debug Mode: Full Result[/bold cyan]")
        console.print("[dim]" + "=" * 60 + "[/dim]")
        response = result.to_response()
        if response["imageBase64"]:
            response["imageBase64"] = f"<{len(response['imageBase64'])} base64 chars>"
        console.print_json(data=response)
        console.print("[dim]" + "=" * 60 + "[/dim]")
        console.print()

    if result.body:
        console.print(Markdown(result.body))
    if result.error:
        console.print(f"[red]✗ {result.error}[/red]")

    if image_path and result.image_base64:
        save_image(result, image_path)

    return 1 if result.error else 0


if __name__ == "__main__":
    debug_mode = False
    image_path = None
    argv_start = 1

    while argv_start < len(sys.argv) and sys.argv[argv_start].startswith("--"):
        if sys.argv[argv_start] == "--debug":
            debug_mode = True
            argv_start += 1
        elif sys.argv[argv_start] == "--save-image":
            argv_start += 1
            if argv_start >= len(sys.argv):
                print("Error: --save-image flag requires a file path")
                sys.exit(1)
            image_path = sys.argv[argv_start]
            argv_start += 1
        else:
            print(f"Unknown flag: {sys.argv[argv_start]}")
            sys.exit(1)

    if argv_start >= len(sys.argv):
        print("Error: No ingredients provided")
        print(USAGE)
        sys.exit(1)

    try:
        sys.exit(run_query(parse_ingredients(sys.argv[argv_start:]), debug=debug_mode, image_path=image_path))
    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        sys.exit(0)
