"""CLI interface."""
from __future__ import annotations

import asyncio
import json
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import typer

from motiongen.models.code_state import CodeState
from motiongen.services.export_service import ExportError, RenderRequest, render_video
from motiongen.timeline.css_mutator import set_property as set_css_property
from motiongen.timeline.scene_duration import scene_duration
from motiongen.timeline.track_parser import parse_tracks
from motiongen.utils.config import settings
from motiongen.utils.file_utils import read_text_file, write_bytes_file

app = typer.Typer(add_completion=False)


def _read(path: str) -> str:
    try:
        return read_text_file(path)
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc))


@app.command()
def tracks(css_file: str = typer.Argument(..., help="Stylesheet to inspect.")):
    """List the animation tracks found in a stylesheet."""
    found = parse_tracks(_read(css_file))
    payload = [dict(asdict(track), end=track.end) for track in found]
    typer.echo(json.dumps(payload, indent=2))


@app.command()
def duration(css_file: str = typer.Argument(..., help="Stylesheet to inspect.")):
    """Print the scene duration in seconds."""
    found = parse_tracks(_read(css_file))
    typer.echo(json.dumps({"tracks": len(found), "duration": scene_duration(found)}))


@app.command("set-property")
def set_property(
    css_file: str = typer.Argument(..., help="Stylesheet to edit."),
    selector: str = typer.Option(..., "--selector", "-s"),
    prop: str = typer.Option(..., "--property", "-p"),
    value: str = typer.Option(..., "--value", "-v"),
    in_place: bool = typer.Option(False, "--in-place", "-i", help="Rewrite the file instead of printing."),
):
    """Set one declaration in a rule, creating the rule if needed."""
    updated = set_css_property(_read(css_file), selector, prop, value)
    if in_place:
        Path(css_file).write_text(updated, encoding="utf-8")
        typer.echo(css_file)
    else:
        typer.echo(updated)


@app.command()
def render(
    html_file: str = typer.Option(..., "--html", help="Scene HTML (body content)."),
    css_file: str = typer.Option(..., "--css", help="Scene stylesheet."),
    output_name: str = typer.Option("animation.webm", "--output-name"),
    seconds: Optional[float] = typer.Option(None, "--duration", help="Defaults to the scene duration."),
    fps: Optional[int] = typer.Option(None, "--fps"),
    orientation: str = typer.Option("landscape", "--orientation"),
    mode: str = typer.Option("frames", "--mode", help="frames or record."),
):
    """Export the scene to a webm video."""
    if orientation not in ("landscape", "portrait"):
        raise typer.BadParameter("orientation must be landscape or portrait")
    if mode not in ("frames", "record"):
        raise typer.BadParameter("mode must be frames or record")
    code = CodeState(html=_read(html_file), css=_read(css_file))
    request = RenderRequest.for_scene(code, orientation, duration_seconds=seconds, fps=fps, mode=mode)
    try:
        data = asyncio.run(render_video(request))
    except ExportError as exc:
        typer.echo(json.dumps({"error": str(exc)}), err=True)
        raise typer.Exit(code=1)
    path = write_bytes_file(settings.output_dir, output_name, data)
    typer.echo(json.dumps({"file": str(path), "bytes": len(data), "duration": request.duration_seconds}))


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload"),
):
    """Run the editor API."""
    import uvicorn

    uvicorn.run("motiongen.server:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
