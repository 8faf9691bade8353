# apps/core/views/custom_handler.py

from common.views_utils import error_response


def json_404_handler(request, exception):
    return error_response("The requested endpoint was not found.", status=404)


def json_500_handler(request):
    return error_response("An internal server error occurred.", status=500)
