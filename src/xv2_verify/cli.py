import json
from pathlib import Path
import click
from .logic import verify_save
from .regions import region_map, write_region_map

CANONICAL_JSON_KW = {"sort_keys": True, "separators": (",", ":"), "ensure_ascii": False}


@click.group()
def main():
    pass


@main.command("check")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def check_cmd(path: Path):
    result = verify_save(path)
    click.echo(json.dumps(result, **CANONICAL_JSON_KW))
    if result["status"] != "PASS":
        raise SystemExit(1)


@main.command("regions")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("out", type=click.Path(dir_okay=False, path_type=Path))
def regions_cmd(path: Path, out: Path):
    result = verify_save(path)
    if result["status"] != "PASS":
        click.echo(json.dumps(result, **CANONICAL_JSON_KW))
        raise SystemExit(1)
    rows = region_map(path.read_bytes(), result["format"])
    write_region_map(rows, out)
    click.echo(f"{len(rows)} regions → {out}")


if __name__ == "__main__":
    main()
