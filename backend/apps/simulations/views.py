"""
Simulation API views.

Creation and reads go through services; PATCH and DELETE go through the
optimistic-concurrency handlers and map their tagged results to responses.
"""

import logging

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.exceptions import error_response
from apps.simulations import services
from apps.simulations.handlers import (
    DeleteSimulationCommand,
    DeleteSimulationHandler,
    UpdateSimulationCommand,
    UpdateSimulationHandler,
)
from apps.simulations.serializers import (
    CreateSimulationSerializer,
    SimulationSerializer,
    UpdateSimulationSerializer,
)
from apps.simulations.validators import parse_start_time

logger = logging.getLogger(__name__)


def _actor(request):
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated and user.get_username():
        return user.get_username()
    return "anonymous"


def _correlation_id(request):
    return getattr(request, "correlation_id", None)


def _missing_if_match():
    return Response(
        {
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Missing If-Match header",
                "details": {
                    "If-Match": [
                        "The If-Match header is required for concurrency control."
                    ]
                },
            }
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


def _not_found(simulation_id):
    return Response(
        {
            "error": {
                "code": "NOT_FOUND",
                "message": f"Simulation with id {simulation_id} was not found.",
                "details": {},
            }
        },
        status=status.HTTP_404_NOT_FOUND,
    )


@api_view(["POST", "GET"])
def create_or_list_simulations(request):
    """
    POST /api/v1/simulations - Create a new Simulation
    GET /api/v1/simulations - List Simulations ordered by start time, id
    """
    if request.method == "POST":
        serializer = CreateSimulationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        simulation = services.create_simulation(
            name=serializer.validated_data["name"],
            start_time=serializer.validated_data["startTime"],
            data_source=serializer.validated_data["dataSource"],
        )

        return Response(
            {"data": SimulationSerializer(simulation).data},
            status=status.HTTP_201_CREATED,
            headers={
                "Location": f"/api/v1/simulations/{simulation.id}",
                "ETag": simulation.token.as_etag(),
            },
        )

    simulations = services.list_simulations()
    serializer = SimulationSerializer(simulations, many=True)
    return Response({"data": serializer.data}, status=status.HTTP_200_OK)


@api_view(["GET"])
def list_simulations_by_start_time(request):
    """
    GET /api/v1/simulations/by-start-time?start_time=ISO-8601

    Simulations whose start time is at or after the boundary.
    """
    start_time = request.query_params.get("start_time")
    if not start_time or not start_time.strip():
        return Response(
            {
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": "Invalid start_time",
                    "details": {
                        "start_time": [
                            "The 'start_time' query parameter is required and must "
                            "be a valid ISO-8601 timestamp."
                        ]
                    },
                }
            },
            status=status.HTTP_400_BAD_REQUEST,
        )

    boundary = parse_start_time(start_time)
    simulations = services.list_simulations_from(boundary)
    serializer = SimulationSerializer(simulations, many=True)
    return Response({"data": serializer.data}, status=status.HTTP_200_OK)


@api_view(["GET", "PATCH", "DELETE"])
def simulation_detail(request, simulationId):
    """
    GET /api/v1/simulations/{id}
    PATCH /api/v1/simulations/{id} (If-Match required)
    DELETE /api/v1/simulations/{id} (If-Match required)
    """
    if request.method == "GET":
        simulation = services.get_simulation(simulationId)
        if simulation is None:
            return _not_found(simulationId)

        return Response(
            {"data": SimulationSerializer(simulation).data},
            status=status.HTTP_200_OK,
            headers={"ETag": simulation.token.as_etag()},
        )

    if_match = request.headers.get("If-Match")
    if not if_match or not if_match.strip():
        return _missing_if_match()

    if request.method == "PATCH":
        serializer = UpdateSimulationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = UpdateSimulationHandler().handle(
            UpdateSimulationCommand(
                id=simulationId,
                if_match=if_match,
                patch=serializer.to_patch(),
                actor=_actor(request),
                correlation_id=_correlation_id(request),
            )
        )
        if not result.ok:
            return error_response(result.error)

        return Response(
            {"data": SimulationSerializer(result.value).data},
            status=status.HTTP_200_OK,
            headers={"ETag": result.token.as_etag()},
        )

    # DELETE
    result = DeleteSimulationHandler().handle(
        DeleteSimulationCommand(
            id=simulationId,
            if_match=if_match,
            actor=_actor(request),
            correlation_id=_correlation_id(request),
        )
    )
    if not result.ok:
        return error_response(result.error)

    if not result.value:
        return _not_found(simulationId)

    return Response(
        status=status.HTTP_204_NO_CONTENT,
        headers={"ETag": result.token.as_etag()},
    )
