import logging
from datetime import datetime, timezone as dt_timezone
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from .converter import get_default_converter, get_record_store, get_conversion_log
from .exceptions import ConversionError, RateFetchError, user_message

logger = logging.getLogger(__name__)


def _error(exc: ConversionError, http_status):
    return Response(
        {"status": "error", "code": exc.code, "message": user_message(exc), "data": None},
        status=http_status,
    )


class ConvertView(APIView):
    """
    POST /api/convert/  amount=100&source=USD&target=INR
    Converts at live rates, saves the record and returns the result.
    Accepts form-encoded or JSON bodies.
    """

    def post(self, request):
        amount = request.data.get('amount')
        source = request.data.get('source')
        target = request.data.get('target')

        try:
            result = get_default_converter().convert(amount, source, target)
        except RateFetchError as e:
            logger.exception(f"Failed to fetch live rates: {e}")
            return _error(e, status.HTTP_502_BAD_GATEWAY)
        except ConversionError as e:
            return _error(e, status.HTTP_400_BAD_REQUEST)

        saved = get_record_store().save(result)
        get_conversion_log().append(result)

        return Response({
            "status": "success",
            "message": "Conversion completed",
            "data": {**result.to_dict(), "saved": saved},
        }, status=status.HTTP_200_OK)


class RatesView(APIView):
    """
    GET /api/rates/
    Returns the active rate table, refreshing it first when stale.
    """

    def get(self, request):
        rates = get_default_converter().rates
        try:
            table = rates.get_table()
        except RateFetchError as e:
            logger.exception(f"Failed to fetch live rates: {e}")
            return _error(e, status.HTTP_502_BAD_GATEWAY)

        fetched_at = datetime.fromtimestamp(table["fetched_at"], tz=dt_timezone.utc)
        return Response({
            "status": "success",
            "message": "Rates fetched",
            "data": {
                "base": table["base"],
                "fetched_at": fetched_at.isoformat(),
                "rates": table["rates"],
            },
        }, status=status.HTTP_200_OK)
