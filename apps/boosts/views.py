import logging

from django.apps import apps
from django.conf import settings
from django.utils.dateparse import parse_date
from rest_framework import status, views
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from . import services
from .errors import BoostNotFound, ErrorKind, PaymentError
from .serializers import BoostSerializer, PayRequestSerializer

logger = logging.getLogger(__name__)

GENERIC_PAYMENT_ERROR = "Payment initiation failed"


def _parse_day(value, name):
    try:
        day = parse_date(value) if value else None
    except ValueError:
        day = None
    if day is None:
        raise ValidationError({"detail": f"Invalid or missing date for '{name}', expected YYYY-MM-DD."})
    return day


def _date_window(request):
    """
    (start, end) for the optional ?date= filter, or (None, None) when absent.
    """
    value = request.query_params.get("date")
    if value is None:
        return None, None
    return services.day_bounds(_parse_day(value, "date"))


class BoostListCreateView(views.APIView):
    def get(self, request, *args, **kwargs):
        serializer = BoostSerializer(services.list_boosts(), many=True)
        return Response(serializer.data)

    def post(self, request, *args, **kwargs):
        serializer = BoostSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        boost = services.create_boost(**serializer.validated_data)
        return Response(BoostSerializer(boost).data, status=status.HTTP_200_OK)


class BoostsByIdentificationNumberView(views.APIView):
    def get(self, request, identification_number: str, *args, **kwargs):
        boosts = services.boosts_for_identification_number(identification_number)
        return Response(BoostSerializer(boosts, many=True).data)


class BoostDetailView(views.APIView):
    def get(self, request, pk: int, *args, **kwargs):
        return Response(BoostSerializer(services.get_boost(pk)).data)

    def delete(self, request, pk: int, *args, **kwargs):
        services.delete_boost(pk)
        return Response("Boost deleted successfully", status=status.HTTP_200_OK)


class PayBoostFeeView(views.APIView):
    """
    Start an M-Pesa push for a boost fee and return the PayHero response
    together with the reference the callback will carry.
    """

    def get_gateway(self):
        return apps.get_app_config("boosts").gateway

    def post(self, request, *args, **kwargs):
        serializer = PayRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"success": False, "error": "Invalid request", "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )
        data = serializer.validated_data

        try:
            boost = None
            if data.get("boost_id") is not None:
                boost = services.get_boost(data["boost_id"])
            outcome = services.initiate_boost_payment(
                self.get_gateway(),
                phone=data["phone"],
                fee=data.get("fee"),
                customer_name=data.get("customer_name"),
                boost=boost,
            )
        except BoostNotFound as exc:
            return self.error_response(PaymentError(ErrorKind.NOT_FOUND, str(exc.detail)))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Boost payment initiation failed")
            return self.error_response(PaymentError(ErrorKind.UNEXPECTED, str(exc)))

        if not outcome.ok:
            return self.error_response(outcome.error)

        body = {
            "success": True,
            "message": "Payment initiated successfully",
            "data": outcome.body,
            "reference": outcome.reference,
        }
        if outcome.boost is not None:
            body["boost_id"] = outcome.boost.pk
        return Response(body, status=status.HTTP_200_OK)

    def error_response(self, error: PaymentError) -> Response:
        if error.kind == ErrorKind.INVALID_PHONE:
            return Response({"success": False, "error": error.message}, status=status.HTTP_400_BAD_REQUEST)
        if error.kind == ErrorKind.GATEWAY:
            return Response(
                {"success": False, "error": error.message, "details": error.body},
                status=error.status,
            )
        if error.kind == ErrorKind.NOT_FOUND:
            return Response({"success": False, "error": error.message}, status=status.HTTP_404_NOT_FOUND)
        if error.kind == ErrorKind.ALREADY_INITIATED:
            return Response({"success": False, "error": error.message}, status=status.HTTP_409_CONFLICT)

        logger.error("Unexpected payment error: %s", error.message)
        message = error.message if settings.BOOSTS_EXPOSE_ERROR_DETAILS else GENERIC_PAYMENT_ERROR
        return Response({"success": False, "error": message}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class PaymentCallbackView(views.APIView):
    """
    PayHero posts the final payment status here. Always acknowledged,
    including for unknown references.
    """

    def post(self, request, *args, **kwargs):
        data = request.data if isinstance(request.data, dict) else {}
        success = data.get("success")
        reference = data.get("reference")

        if success is True:
            boost = services.mark_boost_paid(reference if isinstance(reference, str) else None)
            if boost is None:
                logger.warning("Payment callback for unknown reference %s", reference)
            else:
                logger.info("Boost %s marked paid (%s)", boost.pk, reference)
        else:
            logger.info("Payment callback without success for reference %s", reference)

        return Response("Callback received", status=status.HTTP_200_OK)


class PaidBoostsView(views.APIView):
    def get(self, request, *args, **kwargs):
        start, end = _date_window(request)
        boosts = services.paid_boosts(start, end)
        return Response(BoostSerializer(boosts, many=True).data)


class PaidTotalView(views.APIView):
    def get(self, request, *args, **kwargs):
        start, end = _date_window(request)
        return Response({"total": float(services.total_fees(start, end))})


class PaidCountView(views.APIView):
    def get(self, request, *args, **kwargs):
        start, end = _date_window(request)
        return Response({"count": services.paid_count(start, end)})


class PaidFilterView(views.APIView):
    def get(self, request, *args, **kwargs):
        start_day = _parse_day(request.query_params.get("startDate"), "startDate")
        end_day = _parse_day(request.query_params.get("endDate"), "endDate")
        start, _ = services.day_bounds(start_day)
        _, end = services.day_bounds(end_day)
        boosts = services.paid_boosts(start, end)
        return Response(BoostSerializer(boosts, many=True).data)
