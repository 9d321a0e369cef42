from django.urls import Resolver404, resolve


class OptionalTrailingSlashMiddleware:
    """
    Serve /api/ routes with or without the trailing slash.

    /api/inventory is dispatched as /api/inventory/ in place rather than
    redirected, so POST bodies and the Authorization header are kept.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        path = request.path_info
        if path.startswith('/api/') and not path.endswith('/'):
            try:
                match = resolve(path + '/')
            except Resolver404:
                match = None
            if match is not None and match.url_name != 'route-not-found':
                request.path_info = path + '/'
                request.path = request.path + '/'
        return self.get_response(request)
