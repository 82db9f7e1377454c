"""CLI commands for Flask application."""

import json

import click
from flask.cli import with_appcontext

from questboard.models.challenge import MAX_DIFFICULTY, MIN_DIFFICULTY, ChallengeKind

SEED_FIELDS = (
    "description",
    "category",
    "difficulty",
    "points",
    "tags",
    "is_active",
    "min_level",
    "max_per_day",
    "min_user_level",
)


def _check_definition(index: int, item: dict) -> None:
    for name in ("title", "kind", "description", "category", "points"):
        if name not in item:
            raise click.ClickException(f"Entry {index}: missing '{name}'")
    if item["kind"] not in {k.value for k in ChallengeKind}:
        raise click.ClickException(f"Entry {index}: invalid kind '{item['kind']}'")
    difficulty = item.get("difficulty", MIN_DIFFICULTY)
    if not MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY:
        raise click.ClickException(f"Entry {index}: difficulty out of range")


@click.command("seed-challenges")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--dry-run", is_flag=True, help="Validate without writing")
@with_appcontext
def seed_challenges(path, dry_run):
    """Load challenge definitions from a JSON file.

    Entries are upserted by title and kind. An entry may name its
    prerequisite with "prerequisite": "<title of a global challenge>".
    """
    from questboard import db
    from questboard.models import Challenge

    with open(path, encoding="utf-8") as f:
        items = json.load(f)
    if not isinstance(items, list):
        raise click.ClickException("Seed file must contain a JSON list")

    for index, item in enumerate(items):
        _check_definition(index, item)

    if dry_run:
        click.echo(f"{len(items)} challenge definitions are valid")
        return

    created = updated = 0
    by_title = {}
    for item in items:
        challenge = Challenge.query.filter_by(
            title=item["title"], kind=item["kind"]
        ).first()
        if challenge is None:
            challenge = Challenge(title=item["title"], kind=item["kind"])
            db.session.add(challenge)
            created += 1
        else:
            updated += 1
        for name in SEED_FIELDS:
            if name in item:
                setattr(challenge, name, item[name])
        by_title[item["title"]] = challenge

    db.session.flush()

    # Second pass once every entry has an id
    for item in items:
        prerequisite = item.get("prerequisite")
        if not prerequisite:
            continue
        target = by_title.get(prerequisite) or Challenge.query.filter_by(
            title=prerequisite
        ).first()
        if target is None:
            db.session.rollback()
            raise click.ClickException(
                f"Unknown prerequisite '{prerequisite}' for '{item['title']}'"
            )
        by_title[item["title"]].prerequisite_challenge_id = target.id

    db.session.commit()
    click.echo(f"Done! {created} created, {updated} updated")


@click.command("reset-weekly-points")
@with_appcontext
def reset_weekly_points():
    """Zero weekly points for all users."""
    from questboard import db
    from questboard.models import User

    count = User.query.filter(User.weekly_points != 0).update(
        {User.weekly_points: 0}, synchronize_session=False
    )
    db.session.commit()
    click.echo(f"Weekly points reset for {count} users")
