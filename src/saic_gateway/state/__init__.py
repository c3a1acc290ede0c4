"""Vehicle state layer.

Telemetry, operator controls and informational messages are applied to a
per-vehicle :class:`~saic_gateway.state.vehicle.VehicleState`; every change
yields facts that are published below the vehicle's topic prefix.
"""
