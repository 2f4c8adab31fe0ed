import logging
import warnings
from pathlib import Path

import typer

from pitchtrack.core.frame import build_frame
from pitchtrack.core.mapper import map_dataframe
from pitchtrack.domain.types import CalibrationSet
from pitchtrack.errors import InsufficientFrame
from pitchtrack.io import read_calibration_samples, read_track, save_results_csv
from pitchtrack.models import SamplerConfig
from pitchtrack.profiles import JsonFileStorage, ProfileStore
from pitchtrack.reports import generate_markdown_report
from pitchtrack.sampler import CalibrationSampler
from pitchtrack.sensors import ReplayPositionSource

app = typer.Typer(no_args_is_help=True)

STORE_OPTION = typer.Option(
    Path("pitchtrack_profiles.json"), "--store", envvar="PITCHTRACK_PROFILES",
    help="JSON file holding the saved calibration profiles.",
)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress details.")) -> None:
    """pitchtrack: GPS position tracking on a calibrated field-hockey pitch."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def version() -> None:
    """Print version."""
    typer.echo("pitchtrack 0.1.0")


def _open_store(store: Path) -> ProfileStore:
    return ProfileStore(JsonFileStorage(store))


def _load_profile(profiles: ProfileStore, profile_id: int):
    try:
        return profiles.get(profile_id)
    except KeyError:
        typer.echo(f"Error: no profile with id {profile_id}.", err=True)
        raise typer.Exit(code=1)


@app.command()
def calibrate(
    samples_csv: Path = typer.Argument(..., exists=True, readable=True, help="CSV with raw fixes (key,lat,lon)"),
    name: str = typer.Option(..., "--name", help="Name of the profile to save."),
    samples: int = typer.Option(10, "--samples", help="Queries per reference point."),
    store: Path = STORE_OPTION,
) -> None:
    """
    Replays recorded calibration fixes through the sampler, one session per
    reference point, and saves the averaged points as a profile.
    """
    try:
        recorded = read_calibration_samples(samples_csv)
        config = SamplerConfig(sample_count=samples, interval_s=0.0)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    calibration = CalibrationSet()

    for key, fixes in recorded.items():
        sampler = CalibrationSampler(calibration, ReplayPositionSource(fixes), config)
        mean = sampler.run(key, sleep=lambda _: None)
        if mean is None:
            typer.echo(f"Warning: {sampler.last_error}", err=True)
        else:
            typer.echo(f"{key.value}: {mean.latitude:.8f}, {mean.longitude:.8f}")

    if len(calibration) == 0:
        typer.echo("Error: no reference point could be calibrated.", err=True)
        raise typer.Exit(code=1)
    if build_frame(calibration) is None:
        typer.echo("Warning: these reference points do not define a reference frame.", err=True)

    profiles = _open_store(store)
    try:
        profile = profiles.save(name, calibration)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Saved profile {profile.id} '{profile.name}' to {store}")


@app.command("profiles")
def list_profiles(store: Path = STORE_OPTION) -> None:
    """List saved calibration profiles."""
    profiles = _open_store(store).profiles
    if not profiles:
        typer.echo("No saved profiles.")
        return
    for p in profiles:
        keys = ", ".join(k.value for k in p.data.to_calibration_set())
        typer.echo(f"{p.id}\t{p.name}\t[{keys}]")


@app.command("delete-profile")
def delete_profile(profile_id: int = typer.Argument(...), store: Path = STORE_OPTION) -> None:
    """Delete a saved calibration profile."""
    profiles = _open_store(store)
    try:
        profiles.delete(profile_id)
    except KeyError:
        typer.echo(f"Error: no profile with id {profile_id}.", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Deleted profile {profile_id}")


@app.command()
def track(
    fixes_csv: Path = typer.Argument(..., exists=True, readable=True, help="CSV with lat,lon[,period][,timestamp]"),
    profile_id: int = typer.Option(..., "--profile", help="Profile id to calibrate with."),
    output_csv: Path = typer.Option(Path("track.csv"), "--output", help="Output CSV with field coordinates."),
    store: Path = STORE_OPTION,
) -> None:
    """Maps a recorded GPS track onto the pitch using a saved calibration."""
    profile = _load_profile(_open_store(store), profile_id)
    try:
        df = read_track(fixes_csv)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    try:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            mapped = map_dataframe(df, build_frame(profile.data.to_calibration_set()))
    except InsufficientFrame as e:
        typer.echo(f"Error: profile '{profile.name}': {e}", err=True)
        raise typer.Exit(code=1)
    for w in caught:
        typer.echo(f"Warning: {w.message}", err=True)

    columns = ["period", "x", "y"] + (["timestamp"] if "timestamp" in mapped.columns else [])
    save_results_csv(output_csv, mapped[columns])
    typer.echo(f"Wrote {len(mapped)} points to {output_csv}")


@app.command()
def report(
    profile_id: int = typer.Option(..., "--profile", help="Profile id to report on."),
    output_report: Path = typer.Option(Path("calibration_report.md"), "--output", help="Output report in Markdown format."),
    store: Path = STORE_OPTION,
) -> None:
    """Writes a Markdown report comparing measured landmark distances to the pitch geometry."""
    profile = _load_profile(_open_store(store), profile_id)
    generate_markdown_report(profile.data.to_calibration_set(), output_report, name=profile.name)
    typer.echo(f"Calibration report generated at: {output_report}")


if __name__ == "__main__":
    app()
