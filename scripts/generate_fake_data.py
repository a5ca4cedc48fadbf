"""Generate fake client service-usage data for testing and development.

Creates a wide CSV with one ``Client`` column and one 0/1 column per
marketing service, the format read by ``load_preferences_csv``.

Example:
    Run the script directly to generate default data:
        $ python scripts/generate_fake_data.py

    Or import and use programmatically:
        from scripts.generate_fake_data import generate_fake_preferences
        df = generate_fake_preferences(num_clients=40, usage_rate=0.3)
"""

import argparse
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import pandas as pd

# Default configuration constants
DEFAULT_NUM_CLIENTS = 30
DEFAULT_USAGE_RATE = 0.35
DEFAULT_RANDOM_STATE = 42
DEFAULT_SERVICES = (
    "Website Design",
    "SEO",
    "Email Marketing",
    "Social Media",
    "Logo Design",
    "Influencer Outreach",
)


def generate_fake_preferences(
    num_clients: int = DEFAULT_NUM_CLIENTS,
    services: Sequence[str] = DEFAULT_SERVICES,
    usage_rate: float = DEFAULT_USAGE_RATE,
    random_state: Optional[int] = DEFAULT_RANDOM_STATE,
) -> pd.DataFrame:
    """Generate a synthetic binary client x service usage table.

    Args:
        num_clients: Number of clients (rows). Must be at least 2.
        services: Service names (columns). At least 2 are required.
        usage_rate: Probability that a client uses a given service.
        random_state: Seed for reproducibility.

    Returns:
        DataFrame with a Client column followed by one int column per service.

    Raises:
        ValueError: If the sizes are too small or usage_rate is not in [0, 1].
    """
    if num_clients < 2 or len(services) < 2:
        raise ValueError("Need at least 2 clients and 2 services")
    if not 0.0 <= usage_rate <= 1.0:
        raise ValueError("usage_rate must be between 0 and 1")

    rng = np.random.default_rng(random_state)
    usage = (rng.random((num_clients, len(services))) < usage_rate).astype(int)

    df = pd.DataFrame(usage, columns=list(services))
    df.insert(0, "Client", [f"Client {i:03d}" for i in range(1, num_clients + 1)])
    return df


def main() -> None:
    """Generate fake preferences and save them to data/fake_preferences.csv."""
    parser = argparse.ArgumentParser(description="Generate fake client preferences")
    parser.add_argument("--num-clients", type=int, default=DEFAULT_NUM_CLIENTS)
    parser.add_argument("--usage-rate", type=float, default=DEFAULT_USAGE_RATE)
    parser.add_argument("--random-state", type=int, default=DEFAULT_RANDOM_STATE)
    parser.add_argument(
        "--output",
        type=str,
        default=str(Path(__file__).parent.parent / "data" / "fake_preferences.csv"),
    )
    args = parser.parse_args()

    print(f"Generating preferences for {args.num_clients} clients...")

    try:
        df = generate_fake_preferences(
            num_clients=args.num_clients,
            usage_rate=args.usage_rate,
            random_state=args.random_state,
        )
    except ValueError as e:
        print(f"Error generating data: {e}")
        return

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=False)

    print(f"\nData generated successfully!")
    print(f"Saved to: {output_path}")
    print(f"\nData preview:")
    print(df.head(10))
    print(f"\nService usage totals:")
    print(df.drop(columns="Client").sum().to_string())


if __name__ == "__main__":
    main()
