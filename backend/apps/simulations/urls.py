"""
URL routing for simulation endpoints.
"""

from django.urls import path
from apps.simulations import views

app_name = "simulations"

urlpatterns = [
    path(
        "simulations",
        views.create_or_list_simulations,
        name="create-or-list-simulations",
    ),  # POST, GET
    path(
        "simulations/by-start-time",
        views.list_simulations_by_start_time,
        name="list-simulations-by-start-time",
    ),
    path(
        "simulations/<int:simulationId>",
        views.simulation_detail,
        name="simulation-detail",
    ),  # GET, PATCH, DELETE
]
