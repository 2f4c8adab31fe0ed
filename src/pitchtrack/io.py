from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from pitchtrack.domain.types import GeodeticCoordinate, ReferenceKey


def read_csv_to_dataframe(path: str | Path) -> pd.DataFrame:
    """Reads a CSV and normalizes column names to lowercase."""
    df = pd.read_csv(path)
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df


def read_calibration_samples(path: str | Path) -> Dict[ReferenceKey, List[Optional[GeodeticCoordinate]]]:
    """
    Raw calibration fixes grouped by reference key, in file order.

    Columns: key, lat, lon. A row with an empty lat or lon is a failed query.
    """
    df = read_csv_to_dataframe(path)
    missing = {"key", "lat", "lon"} - set(df.columns)
    if missing:
        raise ValueError(f"Calibration CSV is missing columns: {sorted(missing)}")

    samples: Dict[ReferenceKey, List[Optional[GeodeticCoordinate]]] = {}
    for _, row in df.iterrows():
        key = ReferenceKey.parse(str(row["key"]).strip())
        if pd.isnull(row["lat"]) or pd.isnull(row["lon"]):
            fix = None
        else:
            fix = GeodeticCoordinate(latitude=float(row["lat"]), longitude=float(row["lon"]))
        samples.setdefault(key, []).append(fix)
    return samples


def read_track(path: str | Path) -> pd.DataFrame:
    """
    Recorded live track: lat, lon and optionally period and timestamp.

    Missing periods default to 1; rows without a position are dropped, since
    a lost signal never produces a point.
    """
    df = read_csv_to_dataframe(path)
    if "lat" not in df.columns or "lon" not in df.columns:
        raise ValueError(f"Track CSV must include lat and lon columns (got {list(df.columns)})")
    df = df.dropna(subset=["lat", "lon"]).reset_index(drop=True)
    if "period" not in df.columns:
        df["period"] = 1
    df["period"] = df["period"].astype(int)
    return df


def save_results_csv(path: str | Path, df: pd.DataFrame) -> None:
    """Saves a Pandas DataFrame to CSV."""
    df.to_csv(path, index=False)
