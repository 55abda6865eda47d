"""
Drive the view controller from the command line and print what the map would show.

Actions:
    all                      resolve the popular movies and show every location
    random                   show one random movie
    nearby LAT LNG           show the movies nearest to a position
    search TERM [--pick ID]  search by title, optionally selecting one result

Usage:
    python -m scripts.explore search "amelie" --pick 194

Requires TMDB_API_KEY (and optionally OMDB_API_KEY) in the environment or a .env file.
"""

import argparse  # command-line parsing
import asyncio  # run the async controller
import sys  # log sink
import time  # measure step timings

from loguru import logger  # console logging

from cinemap import config  # log level
from cinemap.geolocation import StaticGeolocation  # position from the command line
from cinemap.service import CineMapService  # wired clients + pipeline
from cinemap.view import ViewController, get_visible_locations  # state machine


def parse_args(argv=None):
	parser = argparse.ArgumentParser(description="Explore movie locations from the command line")
	sub = parser.add_subparsers(dest='action', required=True)
	sub.add_parser('all', help='every resolved popular location')
	sub.add_parser('random', help='one random movie')
	nearby = sub.add_parser('nearby', help='movies nearest to a position')
	nearby.add_argument('lat', type=float)
	nearby.add_argument('lng', type=float)
	search = sub.add_parser('search', help='search by title')
	search.add_argument('term')
	search.add_argument('--pick', type=int, default=None, help='movie id to select from the results')
	return parser.parse_args(argv)


async def run(args) -> int:
	service = CineMapService()  # HTTP client + cache
	position = (args.lat, args.lng) if args.action == 'nearby' else None
	controller = ViewController(service.pipeline, geolocation=StaticGeolocation(position))
	t0 = time.time()  # start timer
	try:
		if args.action == 'all':
			await controller.show_all()
		elif args.action == 'random':
			await controller.show_random()
		elif args.action == 'nearby':
			await controller.show_nearby()
		else:
			results = await controller.search(args.term)
			for r in results:  # the result list the user would pick from
				logger.info(f"  result: [{r.id}] {r.name} ({r.year})")
			if args.pick is not None:
				await controller.select_search_result(args.pick)
	finally:
		await service.close()  # release HTTP client

	state = controller.state
	if state.error:  # user-visible failure
		logger.error(f"[{state.mode.value}] {state.error}")
		return 1

	visible = get_visible_locations(state)  # what the map would render
	logger.info(f"[{state.mode.value}] {len(visible)} visible location(s) in {time.time() - t0:.2f}s")
	for i, loc in enumerate(visible, 1):
		distance = f" | {loc.distance:.0f} km" if loc.distance is not None else ''
		logger.info(f"  {i}. {loc.name} ({loc.year}) @ {loc.position[0]:.4f},{loc.position[1]:.4f}{distance}")
		logger.info(f"     {loc.description.splitlines()[0] if loc.description else ''}")
	return 0


def main(argv=None):
	# Configure console logging once for the script
	logger.remove()
	logger.add(sys.stderr, level=config.LOG_LEVEL)
	sys.exit(asyncio.run(run(parse_args(argv))))


if __name__ == '__main__':
	main()  # invoke explorer
