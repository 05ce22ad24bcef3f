from .resolver import ResolutionContext, ResolutionFailure, ResolutionResult, resolve
