# Command line entry point: print the elimination draw for a competitor list

import argparse
import random
import sys
import yaml
from draws.elimination import generate_bracket, bracket_summary, THIRD_PLACE_NAME
from draws.errors import DrawError
from draws.models import BYE, Competitor
from draws.seeding import seed_event


def load_competitors(file_path):
    """Load competitors from a YAML file.

    Accepts either a list of competitor mappings or a mapping with a
    'competitors' key. Entries without an id use their name as id.
    """
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or []
    if isinstance(data, dict):
        data = data.get('competitors', [])
    competitors = []
    for entry in data:
        if isinstance(entry, str):
            entry = {'id': entry, 'name': entry}
        elif 'id' not in entry:
            entry = dict(entry, id=entry['name'])
        competitors.append(Competitor.from_dict(entry))
    return competitors


def format_draw(matches, competitors):
    """Render the draw as text, one block per round."""
    names = {c.id: c.name for c in competitors}
    seeds = {c.id: c.seed for c in competitors if c.seed is not None}

    def label(competitor_id):
        if competitor_id is None:
            return 'TBD'
        seed = seeds.get(competitor_id)
        name = names.get(competitor_id, competitor_id)
        return f"[{seed}] {name}" if seed else name

    summary = bracket_summary(matches)
    lines = [f"Bracket size: {summary['bracket_size']}, rounds: {summary['total_rounds']}, byes: {summary['byes']}"]
    blocks = list(summary['rounds'].items())
    if summary['third_place'] is not None:
        blocks.append((THIRD_PLACE_NAME, [summary['third_place']]))
    for round_name, round_matches in blocks:
        lines.append('')
        lines.append(f"# {round_name}")
        for match in round_matches:
            if match.status == BYE:
                lines.append(f"M{match.match_number}: {label(match.winner_id)} (bye)")
            else:
                lines.append(f"M{match.match_number}: {label(match.competitor1_id)} vs {label(match.competitor2_id)}")
    return '\n'.join(lines)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Print an elimination draw for a competitor list.')
    parser.add_argument('competitors_file', help='YAML file with the competitors')
    parser.add_argument('--random', action='store_true', help='Place every competitor at random, ignoring seeds')
    parser.add_argument('--shuffle', action='store_true', help='Shuffle unseeded competitors before placing them')
    parser.add_argument('--byes-to-seeds', action='store_true', help='Give available byes to the top seeds first')
    parser.add_argument('--third-place', action='store_true', help='Add a third place match')
    parser.add_argument('--bracket-size', type=int, help='Bracket size (defaults to the next power of two)')
    parser.add_argument('--rng-seed', type=int, help='Random seed for a reproducible draw')
    args = parser.parse_args(argv)

    competitors = load_competitors(args.competitors_file)
    if not competitors:
        print(f"No competitors loaded. Check {args.competitors_file}")
        return 1

    rng = random.Random(args.rng_seed) if (args.random or args.shuffle) else None
    try:
        slots = seed_event(
            competitors,
            bracket_size=args.bracket_size,
            mode='random' if args.random else 'seeded',
            byes_to_seeds=args.byes_to_seeds,
            rng=rng,
        )
        matches = generate_bracket(slots, third_place_match=args.third_place)
    except DrawError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print(format_draw(matches, competitors))
    return 0


if __name__ == '__main__':
    sys.exit(main())
