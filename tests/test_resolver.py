"""
Unit tests for LocationResolver: source priority, fallbacks, enrichment and degradation.
Run: pytest tests/test_resolver.py
"""

import asyncio
from datetime import date

from cinemap.geo import is_valid_position
from cinemap.models import SENTINEL_POSITION, MovieStub
from cinemap.resolver import first_listed

from fakes import FakeServices, build_pipeline, movie


def assert_equal(actual, expected, msg):
	if actual != expected:
		raise AssertionError(f"{msg} | expected={expected}, actual={actual}")


def resolve(services, details):
	_, resolver = build_pipeline(services)
	return asyncio.run(resolver.resolve(MovieStub.from_tmdb(details)))


def test_supplementary_country_wins():
	services = FakeServices()
	details = movie(194, 'Amelie', overview='A shy waitress.', countries=['Germany'])
	services.add_movie(details)
	services.omdb['Amelie'] = {'Title': 'Amelie', 'Year': '2001', 'Country': 'France'}
	services.geo['France'] = [{'lat': '46.6', 'lon': '2.2'}]
	services.geo['Germany'] = [{'lat': '51.1', 'lon': '10.4'}]

	location = resolve(services, details)
	assert_equal(location.position, (46.6, 2.2), "supplementary country geocoded")
	assert location.description.startswith("Filmed in France"), location.description
	assert_equal(location.description, "Filmed in France\nA shy waitress.", "provenance + synopsis")
	assert_equal(location.production_country, 'France', "country of the position")
	assert_equal(location.poster_url, 'https://image.tmdb.org/t/p/w500/poster194.jpg', "poster url")


def test_no_country_anywhere_yields_sentinel():
	services = FakeServices()
	details = movie(5, 'Nowhere', overview='Raw synopsis.')
	services.add_movie(details)

	location = resolve(services, details)
	assert_equal(location.position, SENTINEL_POSITION, "sentinel position")
	assert_equal(location.description, 'Raw synopsis.', "raw synopsis")
	assert location.production_country is None
	assert not location.is_resolved


def test_falls_back_to_production_country_when_supplementary_has_none():
	services = FakeServices()
	details = movie(8, 'Heat', countries=['United States of America', 'Canada'])
	services.add_movie(details)
	services.omdb['Heat'] = {'Title': 'Heat', 'Year': '1995'}  # no Country
	services.geo['United States of America'] = [{'lat': '39.78', 'lon': '-100.45'}, {'lat': '1', 'lon': '1'}]

	location = resolve(services, details)
	assert_equal(location.position, (39.78, -100.45), "first production country, first hit")
	assert location.description.startswith('Filmed in United States of America')


def test_falls_back_when_supplementary_country_does_not_geocode():
	services = FakeServices()
	details = movie(9, 'Ran', countries=['Japan'])
	services.add_movie(details)
	services.omdb['Ran'] = {'Title': 'Ran', 'Country': 'Atlantis'}
	services.geo['Japan'] = [{'lat': '36.5', 'lon': '139.2'}]

	location = resolve(services, details)
	assert_equal(location.position, (36.5, 139.2), "production country fallback")
	assert_equal(location.production_country, 'Japan', "fallback country recorded")


def test_first_listed_country_is_used():
	services = FakeServices()
	details = movie(10, 'Inception')
	services.add_movie(details)
	services.omdb['Inception'] = {'Title': 'Inception', 'Country': 'United States, United Kingdom'}
	services.geo['United States'] = [{'lat': '39.78', 'lon': '-100.45'}]

	location = resolve(services, details)
	assert location.description.startswith('Filmed in United States\n')
	assert_equal(first_listed(' Spain , France'), 'Spain', "first entry trimmed")
	assert first_listed('') is None


def test_sub_lookup_failures_degrade_instead_of_raising():
	services = FakeServices()
	details = movie(11, 'Solaris', overview='Space.', countries=['Soviet Union'])
	services.add_movie(details)
	services.failing.update({'omdb', 'geo'})

	location = resolve(services, details)
	assert_equal(location.position, SENTINEL_POSITION, "degraded to sentinel")
	assert_equal(location.description, 'Space.', "synopsis kept")
	assert_equal(location.director, None, "no supplementary director")


def test_mismatched_supplementary_title_is_ignored():
	services = FakeServices()
	details = movie(12, 'Alien', countries=['United Kingdom'])
	services.add_movie(details)
	services.omdb['Alien'] = {'Title': 'The Pursuit of Happyness', 'Country': 'Narnia'}
	services.geo['United Kingdom'] = [{'lat': '54.7', 'lon': '-3.3'}]

	location = resolve(services, details)
	assert_equal(location.position, (54.7, -3.3), "wrong supplementary match skipped")


def test_enrichment_director_and_cast():
	services = FakeServices()
	crew = [{'job': 'Producer', 'name': 'P'}, {'job': 'Director', 'name': 'Michael Mann'}]
	details = movie(13, 'Collateral', cast=['Tom Cruise', 'Jamie Foxx', 'Jada Pinkett Smith', 'Mark Ruffalo'], crew=crew)
	services.add_movie(details)

	location = resolve(services, details)
	assert_equal(location.cast, ('Tom Cruise', 'Jamie Foxx', 'Jada Pinkett Smith'), "three leading cast names")
	assert_equal(location.director, 'Michael Mann', "crew director fallback")

	services.omdb['Collateral'] = {'Title': 'Collateral', 'Director': 'M. Mann, Someone Else'}
	location = resolve(services, details)
	assert_equal(location.director, 'M. Mann', "supplementary director, first listed")


def test_no_credits_means_no_cast():
	services = FakeServices()
	details = movie(14, 'Quiet')
	services.add_movie(details)
	assert resolve(services, details).cast is None


def test_year_falls_back_to_current_year():
	services = FakeServices()
	details = movie(15, 'Untitled', release_date='')
	services.add_movie(details)
	_, resolver = build_pipeline(services)
	resolver._today = lambda: date(2031, 1, 1)

	location = asyncio.run(resolver.resolve(MovieStub.from_tmdb(details)))
	assert_equal(location.year, 2031, "current year fallback")
	omdb_request = services.requests[-1]
	assert_equal(omdb_request.url.host, 'www.omdbapi.com', "last call is the supplementary lookup")
	assert 'y' not in omdb_request.url.params


def test_positions_are_sentinel_or_in_bounds():
	services = FakeServices()
	for i, (country, hit) in enumerate([('Chile', ('-35.6', '-71.5')), ('Fiji', ('-17.7', '178.0')), ('Nowhere', None)]):
		details = movie(100 + i, f"Film {i}", countries=[country])
		services.add_movie(details)
		if hit:
			services.geo[country] = [{'lat': hit[0], 'lon': hit[1]}]
	pipeline, _ = build_pipeline(services)

	locations = asyncio.run(pipeline.resolve_popular())
	assert len(locations) == 3
	for location in locations:
		assert is_valid_position(location.position), location


def test_empty_cast_list_means_no_cast():
	services = FakeServices()
	details = movie(16, 'Koyaanisqatsi', cast=[], crew=[{'job': 'Director', 'name': 'Godfrey Reggio'}])
	services.add_movie(details)

	location = resolve(services, details)
	assert_equal(location.cast, None, "no cast names listed")
	assert_equal(location.director, 'Godfrey Reggio', "crew still used")
