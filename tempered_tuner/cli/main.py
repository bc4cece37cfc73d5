"""Command-line entry point for Tempered Tuner."""

import time
from collections import Counter
from typing import Optional, Tuple

import click

from ..core.config import ConfigManager
from ..core.errors import TunerError
from ..core.factory import ComponentFactory
from ..logger import get_logger
from ..logging_config import setup_logging
from ..music.temperament import BUILTIN_TEMPERAMENTS, TemperamentModel
from ..note_types import Detected, Reading
from ..services.tuning_pipeline import TuningPipeline, compose
from ..services.tuning_service import TuningService

logger = get_logger(__name__)


def _parse_offsets(offsets: Tuple[str, ...]) -> dict:
    """Parse repeated ``NOTE=CENTS`` options."""
    parsed = {}
    for item in offsets:
        note, sep, cents = item.partition("=")
        if not sep:
            raise click.BadParameter(f"Expected NOTE=CENTS, got {item!r}", param_hint="--offset")
        try:
            parsed[note.strip()] = float(cents)
        except ValueError:
            raise click.BadParameter(f"Offset must be a number: {item!r}", param_hint="--offset")
    return parsed


def _build_temperament(
    factory: ComponentFactory, name: Optional[str], offsets: Tuple[str, ...]
) -> TemperamentModel:
    """Offsets are applied on top of ``name``, or the configured temperament."""
    model = factory.create_temperament(name)
    try:
        for note, cents in _parse_offsets(offsets).items():
            model.set(note, cents)
    except TunerError as e:
        raise click.BadParameter(str(e), param_hint="--offset")
    return model


def _build_pipeline(
    factory: ComponentFactory,
    a4: Optional[float],
    temperament: Optional[str],
    offsets: Tuple[str, ...],
) -> TuningPipeline:
    model = _build_temperament(factory, temperament, offsets) if temperament or offsets else None
    try:
        return factory.create_pipeline(a4=a4, temperament=model)
    except TunerError as e:
        raise click.BadParameter(str(e), param_hint="--a4")


def format_reading(reading: Reading, timestamp: float) -> str:
    if not reading:
        return f"{timestamp:7.2f}s  -"
    return (
        f"{timestamp:7.2f}s  {reading.name:<4} {reading.frequency:8.1f} Hz  "
        f"raw {reading.raw_cents:+4.0f}  adjusted {reading.adjusted_cents:+6.1f} cents"
    )


temperament_option = click.option(
    "--temperament",
    "-t",
    type=click.Choice(sorted(BUILTIN_TEMPERAMENTS)),
    default=None,
    help="Built-in temperament (default: from config)",
)
offset_option = click.option(
    "--offset",
    "-o",
    multiple=True,
    metavar="NOTE=CENTS",
    help="Per-note cents offset, may be repeated",
)
a4_option = click.option(
    "--a4", type=float, default=None, help="Reference pitch for A4 in Hz (default: from config)"
)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Configuration directory (default: $TEMPERED_TUNER_CONFIG_DIR or ~/.config/tempered_tuner)",
)
@click.pass_context
def cli(ctx, debug, config_dir):
    """Tempered Tuner - pitch detection with custom temperaments"""
    setup_logging("DEBUG" if debug else "WARNING")
    ctx.obj = ComponentFactory(ConfigManager(config_dir))


@cli.command()
@click.argument("frequency", type=float)
@a4_option
@temperament_option
@offset_option
@click.option("--flats", is_flag=True, help="Spell accidentals with flats")
@click.pass_obj
def note(factory, frequency, a4, temperament, offset, flats):
    """Show the note and deviation for FREQUENCY in Hz."""
    settings = _build_pipeline(factory, a4, temperament, offset).settings()
    try:
        result = compose(Detected(frequency), settings.temperament, settings.a4)
    except TunerError as e:
        raise click.BadParameter(str(e), param_hint="FREQUENCY")

    label = result.note.flat_label if flats else result.note.label
    click.echo(
        f"{label}{result.octave}  raw {result.raw_cents:+.0f} cents  "
        f"adjusted {result.adjusted_cents:+.1f} cents"
    )


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@a4_option
@temperament_option
@offset_option
@click.option("--block-size", type=int, default=None, help="Frames per analysis block")
@click.pass_obj
def analyze(factory, path, a4, temperament, offset, block_size):
    """Analyze a sound file block by block."""
    kwargs = {"file_path": path}
    if block_size:
        kwargs["frames_per_buffer"] = block_size
    try:
        source = factory.create_audio_input("wav", **kwargs)
    except TunerError as e:
        raise click.ClickException(str(e))

    service = TuningService(pipeline=_build_pipeline(factory, a4, temperament, offset))

    notes = Counter()
    for block, timestamp in source.blocks():
        reading = service.process_block(
            block, source.sample_rate, timestamp=timestamp, channels=source.channels
        )
        if reading:
            notes[reading.name] += 1
        click.echo(format_reading(reading, timestamp))

    if notes:
        name, count = notes.most_common(1)[0]
        click.echo(f"Most frequent note: {name} ({count} blocks)")
    else:
        click.echo("No pitch detected")


@cli.command()
@click.option("--device", type=int, default=None, help="Audio input device ID")
@click.option("--duration", type=float, default=10.0, help="Listening time in seconds")
@a4_option
@temperament_option
@offset_option
@click.pass_obj
def listen(factory, device, duration, a4, temperament, offset):
    """Tune live from the microphone."""
    pipeline = _build_pipeline(factory, a4, temperament, offset)
    overrides = {"device_id": device} if device is not None else {}
    try:
        service = factory.create_tuning_service(
            audio_input=factory.create_audio_input(**overrides), pipeline=pipeline
        )
        start_time = time.time()
        service.events.on_reading(
            lambda reading: click.echo(format_reading(reading, reading.timestamp - start_time))
        )
        service.start()
    except (TunerError, OSError) as e:
        # OSError: PortAudio itself could not be loaded
        raise click.ClickException(str(e))

    try:
        time.sleep(duration)
    except KeyboardInterrupt:
        click.echo("Interrupted")
    finally:
        service.stop()


@cli.command()
def temperaments():
    """List the built-in temperaments."""
    for name in sorted(BUILTIN_TEMPERAMENTS):
        offsets = TemperamentModel.builtin(name).to_dict()
        click.echo(f"{name}: " + " ".join(f"{k}{v:+.1f}" for k, v in offsets.items()))


@cli.command()
def devices():
    """List audio input devices."""
    try:
        from ..audio.audio_input import list_input_devices

        found = list_input_devices()
    except (TunerError, OSError) as e:
        raise click.ClickException(str(e))
    for device in found:
        click.echo(
            f"{device['id']}: {device['name']} "
            f"(inputs: {device['channels']}, rate: {device['default_samplerate']} Hz)"
        )


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
