#!/usr/bin/env python3

import click

from stave_practice.core.config import ConfigManager
from stave_practice.errors import StavePracticeError
from stave_practice.logger import get_logger
from stave_practice.logging_config import setup_logging
from stave_practice.practice_session import SessionController, default_capture_factory
from stave_practice.sequence import DEFAULT_SEQUENCE, available_sequences, get_sequence


def print_input_devices():
    """Print the available audio input devices."""
    from stave_practice.audio.audio_input import list_input_devices

    click.echo("Available audio input devices:")
    click.echo("-" * 30)
    for device in list_input_devices():
        click.echo(
            f"{device['id']}: {device['name']} "
            f"(inputs: {device['channels']}, rate: {device['default_samplerate']}Hz)"
        )


@click.command()
@click.option("--sequence", "-s", default=DEFAULT_SEQUENCE, show_default=True, help="Practice sequence to play.")
@click.option("--device", type=int, default=None, help="Audio input device ID.")
@click.option("--sample-rate", type=int, default=None, help="Audio sample rate in Hz.")
@click.option("--wav", "wav_path", type=click.Path(exists=True, dir_okay=False), default=None,
              help="Play back a recording instead of listening to a device.")
@click.option("--config-dir", type=click.Path(file_okay=False), default=None,
              help="Directory holding practice.json (default: ~/.config/stave_practice).")
@click.option("--list-sequences", is_flag=True, help="List practice sequences and exit.")
@click.option("--list-devices", is_flag=True, help="List audio input devices and exit.")
@click.option("--debug", is_flag=True, help="Enable debug logging.")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Also write the log to this file.")
def main(sequence, device, sample_rate, wav_path, config_dir, list_sequences, list_devices, debug, log_file):
    """Stave Practice - play the scrolling notes on your instrument."""
    setup_logging(level="DEBUG" if debug else "INFO", log_file=log_file)
    logger = get_logger(__name__)

    if list_sequences:
        for name in available_sequences():
            keys = " ".join(n.pitch_key for n in get_sequence(name).notes)
            click.echo(f"{name:10} {keys}")
        return

    if list_devices:
        print_input_devices()
        return

    try:
        # Fail on an unknown sequence before opening any window
        get_sequence(sequence)
        config = ConfigManager(config_dir).practice_config(
            device_id=device, sample_rate=sample_rate
        )
    except StavePracticeError as e:
        raise click.UsageError(str(e)) from e

    capture_factory = default_capture_factory
    if wav_path:
        from stave_practice.audio.wav_capture import WavFileCapture

        def capture_factory(cfg):
            return WavFileCapture(wav_path, window_size=cfg.window_size)

    # Imported here so --list-* work without a display
    from stave_practice.ui import PygameUI

    controller = SessionController(config=config, capture_factory=capture_factory)
    try:
        PygameUI(fps=config.fps).run(controller, sequence)
    except Exception:
        logger.exception("An unhandled error occurred in the main application.")
        raise
    finally:
        logger.info("Stave Practice is shutting down.")


if __name__ == "__main__":
    main()
