from tfpipe.executors.make import MakeExecutor, check_tools, check_workspace

__all__ = ["MakeExecutor", "check_tools", "check_workspace"]
