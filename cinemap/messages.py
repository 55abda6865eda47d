"""
User-facing message texts shown by the UI layer for errors, progress and success.
"""

# Errors
LOADING_LOCATIONS = 'Could not load movie locations. Please try again later.'
SEARCH_RESULTS = 'Error searching for movies. Please try again.'
MOVIE_LOCATIONS = 'Error getting locations for this movie.'
NO_VALID_LOCATIONS = 'No valid locations were found for this movie.'
NO_LOCATIONS_FOUND = 'No locations were found for this movie.'
RANDOM_MOVIE = 'Could not pick a random movie. Please try again.'
RECOMMENDATIONS = 'Could not load recommendations for this movie.'
GEOLOCATION_NOT_SUPPORTED = 'Geolocation is not available on this device.'
PERMISSION_DENIED = 'Please allow access to your location to use this feature.'
POSITION_UNAVAILABLE = 'Could not get your location. Please check your GPS connection.'
TIMEOUT = 'The location request took too long. Please try again.'

# Success
LOCATIONS_LOADED = 'Locations loaded successfully'
SEARCH_COMPLETE = 'Search complete'
LOCATION_LOADED = 'Location loaded successfully'

# Loading
SEARCHING = 'Searching...'
LOADING = 'Loading movie locations...'
GETTING_LOCATION = 'Getting your location...'
CALCULATING_DISTANCES = 'Calculating distances...'
