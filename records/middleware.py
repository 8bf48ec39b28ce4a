class NoStoreApiMiddleware:
    """Mark every API response as uncacheable.

    Emergency lookups and staff views both carry health data that must
    not be kept by browsers or intermediaries.
    """
    PREFIX = '/api/'

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        if (request.path or '').startswith(self.PREFIX):
            response['Cache-Control'] = 'no-store'
            response['Pragma'] = 'no-cache'
        return response
