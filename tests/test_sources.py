"""
Unit tests for the source adapters (metadata, supplementary metadata, geocoding).
Run: pytest tests/test_sources.py
"""

import asyncio

import pytest

from cinemap.errors import MissingCredentialsError, NotFoundError
from cinemap.sources import Geocoder, OMDbClient, TMDBClient

from fakes import GEO, OMDB, TMDB, FakeServices, movie


def test_popular_and_search_parse_stubs():
	services = FakeServices()
	services.add_movie(movie(1, 'Amelie', release_date='2001-04-25'))
	services.popular[1].append({'title': 'no id'})  # malformed entry is skipped
	services.search['amelie'] = [movie(1, 'Amelie')]
	tmdb = TMDBClient(services.fetcher(), api_key='k', base_url=TMDB)

	popular = asyncio.run(tmdb.fetch_popular())
	assert [s.id for s in popular] == [1]
	assert popular[0].year == 2001

	found = asyncio.run(tmdb.fetch_search('amelie'))
	assert found[0].title == 'Amelie'
	request = services.requests[-1]
	assert request.url.params['api_key'] == 'k'
	assert request.url.params['language'] == 'en-US'


def test_details_request_appends_credits():
	services = FakeServices()
	services.add_movie(movie(7, 'Heat', cast=['Al Pacino']))
	tmdb = TMDBClient(services.fetcher(), api_key='k', base_url=TMDB)

	details = asyncio.run(tmdb.fetch_by_id(7))
	assert details['credits']['cast'][0]['name'] == 'Al Pacino'
	assert services.requests[-1].url.params['append_to_response'] == 'credits'


def test_poster_url():
	tmdb = TMDBClient(FakeServices().fetcher(), api_key='k', image_base_url='https://image.tmdb.org/t/p/', poster_size='w500')
	assert tmdb.poster_url('/abc.jpg') == 'https://image.tmdb.org/t/p/w500/abc.jpg'
	assert tmdb.poster_url(None) is None


def test_missing_key_fails_without_request():
	services = FakeServices()
	tmdb = TMDBClient(services.fetcher(), api_key=None, base_url=TMDB)
	omdb = OMDbClient(services.fetcher(), api_key='', base_url=OMDB)

	with pytest.raises(MissingCredentialsError):
		asyncio.run(tmdb.fetch_popular())
	with pytest.raises(MissingCredentialsError):
		asyncio.run(omdb.fetch_supplementary('Heat'))
	assert services.requests == []


def test_supplementary_not_found_and_na_fields():
	services = FakeServices()
	services.omdb['Heat'] = {'Title': 'Heat', 'Country': 'United States', 'Director': 'N/A'}
	omdb = OMDbClient(services.fetcher(), api_key='k', base_url=OMDB)

	record = asyncio.run(omdb.fetch_supplementary('Heat', 1995))
	assert record['Country'] == 'United States'
	assert 'Director' not in record
	assert services.requests[-1].url.params['y'] == '1995'

	with pytest.raises(NotFoundError):
		asyncio.run(omdb.fetch_supplementary('Nothing Like This'))


def test_geocode_parses_and_filters_hits():
	services = FakeServices()
	services.geo['France'] = [
		{'lat': '46.6', 'lon': '2.2'},
		{'lat': 'north', 'lon': '2.2'},  # unparsable
		{'lat': '123.0', 'lon': '2.2'},  # out of bounds
		{'lat': '48.85', 'lon': '2.35'},
	]
	geocoder = Geocoder(services.fetcher(), base_url=GEO)

	hits = asyncio.run(geocoder.geocode('France'))
	assert hits == [(46.6, 2.2), (48.85, 2.35)]
	assert asyncio.run(geocoder.geocode('Atlantis')) == []
	assert asyncio.run(geocoder.geocode('   ')) == []

	request = services.requests[0]
	assert request.url.params['format'] == 'json'
	assert request.url.params['limit'] == '1'
	assert request.headers['User-Agent']


def test_recommendations_parse_stubs():
	services = FakeServices()
	services.recommendations[7] = [
		dict(movie(8, 'Collateral', release_date='2004-08-06'), vote_average=7.5),
		{'title': 'no id'},  # malformed entry is skipped
		movie(9, 'Thief', release_date=''),
	]
	tmdb = TMDBClient(services.fetcher(), api_key='k', base_url=TMDB)

	stubs = asyncio.run(tmdb.fetch_recommendations(7))
	assert [s.id for s in stubs] == [8, 9]
	assert stubs[0].vote_average == 7.5 and stubs[0].year == 2004
	assert stubs[1].vote_average is None and stubs[1].year is None
	request = services.requests[-1]
	assert request.url.path == '/3/movie/7/recommendations'
	assert request.url.params['page'] == '1'

	assert asyncio.run(tmdb.fetch_recommendations(99)) == []
