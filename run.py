import click

from handbook import create_app, db
from handbook.errors import HandbookError
from handbook.services.chapter_renamer import ChapterRenamer
from handbook.services.image_resolver import ImageResolver


app = create_app()


@app.cli.command("init-db")
def init_db():
    with app.app_context():
        db.create_all()

@app.cli.command("drop-db")
def drop_db():
    with app.app_context():
        db.drop_all()

@app.cli.command("reset-db")
def reset_db():
    with app.app_context():
        db.drop_all()
        db.create_all()


@app.cli.command("rename-chapter")
@click.argument("old_id")
@click.argument("new_id")
def rename_chapter(old_id, new_id):
    with app.app_context():
        renamer = ChapterRenamer(run_logs_path=app.config.get("STORAGE_RUN_LOGS_PATH"))
        try:
            result = renamer.rename_chapter(old_id, new_id)
        except HandbookError as exc:
            raise click.ClickException(f"{exc.code}: {exc.message}")
        click.echo(f"Renamed {old_id} -> {new_id}")
        for table, count in result["migrated"].items():
            click.echo(f"  {table}: {count}")


@app.cli.command("orphan-report")
@click.option("--days", type=int, default=None, help="Only report orphans older than this many days.")
def orphan_report(days):
    with app.app_context():
        if days is None:
            days = app.config.get("ORPHAN_MAX_AGE_DAYS", 30)
        images = ImageResolver().find_orphans(older_than_days=days)
        click.echo(f"{len(images)} orphan image(s) older than {days} day(s)")
        for image in images:
            click.echo(f"  {image.id}  {image.created_at.isoformat()}  {image.original_name}")


@app.cli.command("check-images")
def check_images():
    with app.app_context():
        report = ImageResolver().audit_ownership()
        if not report:
            click.echo("All image owners are consistent")
            return
        for image_id, problems in sorted(report.items()):
            click.echo(f"{image_id}: {', '.join(problems)}")
        raise SystemExit(1)


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000)
