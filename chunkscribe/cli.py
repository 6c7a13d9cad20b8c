#!/usr/bin/env python3

# Copyright (C) 2022 Luis López <luis@cuarentaydos.com>
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program; if not, write to the Free Software
# Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA  02110-1301,
# USA.


from pathlib import Path

import click

from . import codec, silence, transcribe
from .lib import filesystem as fs
from .lib import log
from .timeline import format_timestamp


def logging_options(fn):
    fn = click.option("-v", "verbose", count=True, help="Increase log level")(fn)
    fn = click.option("-q", "quiet", count=True, help="Decrease log level")(fn)

    return fn


def _mb(value: int | None) -> str:
    return f"{value / 1024 / 1024:.2f} MB" if value is not None else "unknown"


@click.command("analyze")
@click.argument("targets", nargs=-1, required=True, type=Path)
def analyze_cmd(targets: list[Path]):
    for file in fs.iter_files_in_targets(
        targets, error_handler=lambda x: click.echo(x, err=True)
    ):
        try:
            info = codec.probe_audio(file)
        except codec.CodecError as e:
            click.echo(f"{file}: {e}", err=True)
            continue

        duration = format_timestamp(info.duration) if info.duration else "unknown"
        bit_rate = f"{info.bit_rate / 1000:.0f} kbps" if info.bit_rate else "unknown"

        click.echo(f"{file}")
        click.echo(f"  Format: {info.format_name}")
        click.echo(f"  Duration: {duration}")
        click.echo(f"  Bit rate: {bit_rate}")
        click.echo(f"  File size: {_mb(info.size)}")
        if info.has_audio:
            click.echo(f"  Codec: {info.codec}")
            click.echo(f"  Sample rate: {info.sample_rate} Hz")
            click.echo(f"  Channels: {info.channels}")
            click.echo(f"  Bits per sample: {info.bits_per_sample or 'unknown'}")
        else:
            click.echo("  No audio stream")


@click.command("silence-test")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def silence_test_cmd(file: Path):
    results = list(silence.scan_presets(file))

    click.echo("=== SILENCE DETECTION TEST RESULTS ===")
    for idx, (preset, scan) in enumerate(results):
        count = "failed" if scan is None else f"{len(scan.silence_points)} silence points"
        click.echo(f"{idx + 1}. {preset.description}: {count}")
        click.echo(f"   Noise: {preset.noise_db:g}dB, Duration: {preset.min_silence:g}s")


@click.command("convert")
@click.option("--overwrite", "-f", is_flag=True, default=False)
@click.argument("targets", nargs=-1, required=True, type=Path)
def convert_cmd(targets: list[Path], overwrite: bool = False):
    for file in fs.iter_files_in_targets(
        targets, error_handler=lambda x: click.echo(x, err=True)
    ):
        extension = codec.DEFAULT_PROFILE.extension
        if file.suffix.lower() == f".{extension}":
            click.echo(f"{file}: already compatible")
            continue

        dest = fs.change_file_extension(file, extension)

        if dest.exists() and not overwrite:
            click.echo(f"{dest}: already exists", err=True)
            continue

        with fs.temp_dirpath_ctx(prefix="chunkscribe-") as tmpd:
            try:
                converted = codec.to_compatible_format(file, tmpd)
            except codec.CodecError as e:
                click.echo(f"{file}: {e}", err=True)
                continue

            fs.safe_mv(converted, dest, overwrite=overwrite)

        click.echo(f"'{file}' -> '{dest}'")


@click.group("chunkscribe")
@logging_options
def main(verbose: int = 0, quiet: int = 0):
    log.setup_logging(verbose=verbose, quiet=quiet)


main.add_command(transcribe.transcribe_cmd)
main.add_command(analyze_cmd)
main.add_command(silence_test_cmd)
main.add_command(convert_cmd)
