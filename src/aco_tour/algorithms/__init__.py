from .colony_solver import ColonySolver, GenerationResult, RunResult

__all__ = ["ColonySolver", "GenerationResult", "RunResult"]
