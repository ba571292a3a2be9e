from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

import click

from .config import get_settings
from .fallback import estimate_daily_expenses
from .geo import available_cities
from .models import InvalidInputError, TransportRequest, TripParams
from .transport import TransportCalculator
from . import budget, services

logger = logging.getLogger(__name__)

MODES = click.Choice(["flight", "bus", "car"])
FLIGHT_CLASSES = click.Choice(["economy", "business"])
BUS_CLASSES = click.Choice(["conventional", "sleeper"])


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        handlers=[logging.FileHandler("tripcost.log"), logging.StreamHandler()],
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _date(value: Optional[str]):
    return value or datetime.now().date().isoformat()


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def cli(verbose: bool) -> None:
    """Trip transport and budget estimates."""
    setup_logging(verbose)


@cli.command()
@click.argument("origin")
@click.argument("destination")
@click.option("--mode", type=MODES, default="flight", show_default=True)
@click.option("--flight-class", type=FLIGHT_CLASSES, default="economy")
@click.option("--bus-class", type=BUS_CLASSES, default="conventional")
@click.option("--passengers", type=int, default=1, show_default=True)
@click.option("--date", "travel_date", help="Travel date (YYYY-MM-DD), default today")
def quote(
    origin: str,
    destination: str,
    mode: str,
    flight_class: str,
    bus_class: str,
    passengers: int,
    travel_date: Optional[str],
) -> None:
    """Price the trip ORIGIN → DESTINATION."""
    try:
        request = TransportRequest(
            origin_city=origin,
            destination_city=destination,
            mode=mode,
            travel_date=_date(travel_date),
            passenger_count=passengers,
            flight_class=flight_class,
            bus_class=bus_class,
        )
    except InvalidInputError as exc:
        raise click.BadParameter(str(exc)) from exc

    result = TransportCalculator().calculate(request)
    if not result.distance_resolved:
        click.echo(f"! unknown city, using generic distance of {result.distance_km:.0f} km")
    click.echo(f"{origin} → {destination} ({mode}): {result.distance_km:.0f} km")
    click.echo(
        f"Total: {result.total_cost}  per person: {result.cost_per_person}"
        f"  high season: {'yes' if result.is_high_season else 'no'}"
    )
    b = result.breakdown
    click.echo(
        f"Base: {b.base_cost}  seasonal: {b.seasonal_adjustment:.0f}"
        f"  class multiplier: {b.class_multiplier}"
    )


@cli.command()
@click.argument("destination_code")
@click.option("--flight-price", type=float, required=True, help="Flight price used for estimates")
@click.option("--live/--no-live", default=True, help="Query the hotel API first")
def hotel(destination_code: str, flight_price: float, live: bool) -> None:
    """Nightly accommodation and daily expenses for DESTINATION_CODE."""
    estimator = services.build_accommodation_estimator(get_settings(), live=live)
    result = estimator.get_accommodation_price(destination_code, flight_price)
    click.echo(
        f"{destination_code.upper()}: {result.accommodation}/night, "
        f"{result.daily_expenses}/day expenses ({result.source.value})"
    )


@cli.command(name="budget")
@click.argument("origin")
@click.argument("destination")
@click.option("--start", "start_date", required=True, help="YYYY-MM-DD")
@click.option("--end", "end_date", required=True, help="YYYY-MM-DD")
@click.option("--mode", type=MODES, default="flight", show_default=True)
@click.option("--flight-class", type=FLIGHT_CLASSES, default="economy")
@click.option("--bus-class", type=BUS_CLASSES, default="conventional")
@click.option("--passengers", type=int, default=1, show_default=True)
@click.option("--destination-code", help="IATA city code for live prices")
@click.option("--origin-code", help="IATA city code of the origin")
@click.option("--tiered", is_flag=True, help="Comfort tier travels business/sleeper")
@click.option("--fare-tiers", is_flag=True, help="Flight fare x1.0 / x1.3 / x1.8 per tier")
@click.option("--live/--no-live", default=True, help="Query live price APIs")
@click.option("--csv", "as_csv", is_flag=True, help="Write the table to a CSV file")
def budget_cmd(
    origin: str,
    destination: str,
    start_date: str,
    end_date: str,
    mode: str,
    flight_class: str,
    bus_class: str,
    passengers: int,
    destination_code: Optional[str],
    origin_code: Optional[str],
    tiered: bool,
    fare_tiers: bool,
    live: bool,
    as_csv: bool,
) -> None:
    """Economy / medium / comfort budgets for a trip."""
    try:
        params = TripParams(
            origin_city=origin,
            destination_city=destination,
            start_date=start_date,
            end_date=end_date,
            mode=mode,
            passenger_count=passengers,
            flight_class=flight_class,
            bus_class=bus_class,
            destination_code=destination_code,
            origin_code=origin_code,
            tiered_transport=tiered,
            tier_fare_multipliers=fare_tiers,
        )
    except InvalidInputError as exc:
        raise click.BadParameter(str(exc)) from exc

    composer = services.build_composer(get_settings(), live=live)
    rec = composer.compose_budget(params)

    if as_csv:
        path = budget.recommendation_frame(rec, output="csv")
        click.echo(f"Written to {path}")
        return

    df = budget.recommendation_frame(rec)
    click.echo(df.to_string(index=False))
    if rec.accommodation_source is not None:
        click.echo(f"Accommodation source: {rec.accommodation_source.value}")


@cli.command()
def cities() -> None:
    """List cities with known coordinates."""
    for name in available_cities():
        click.echo(name)


@cli.command(name="prune-cache")
def prune_cache() -> None:
    """Delete expired cache entries."""
    removed = services.build_cache(get_settings()).prune()
    click.echo(f"Removed {removed} expired entries")


@cli.command(name="daily-expenses")
@click.argument("accommodation", type=float)
def daily_expenses(accommodation: float) -> None:
    """Daily expenses implied by a nightly ACCOMMODATION price."""
    click.echo(estimate_daily_expenses(accommodation))


if __name__ == "__main__":
    cli()
