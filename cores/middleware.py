# cores/middleware.py
from django.http import HttpResponse


class NoContentOptionsMiddleware:
    """
    Answers every OPTIONS request with an empty 204.

    Sits in front of CorsMiddleware so the CORS headers it adds (preflight or
    not) are carried over onto the 204.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        if request.method != "OPTIONS":
            return response

        no_content = HttpResponse(status=204)
        for header, value in response.items():
            if header.lower().startswith("access-control-"):
                no_content[header] = value
        return no_content
