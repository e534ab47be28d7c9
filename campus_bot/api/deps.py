# Role: Process-wide FlowController shared by the HTTP routers (one in-memory store per API process).

from campus_bot.core.flow_controller import FlowController

flow_controller = FlowController()
