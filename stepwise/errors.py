class StepperError(Exception): pass

class SourceError(StepperError): pass

class SyntaxShapeError(StepperError): pass

class StepperStateError(StepperError): pass

class StepBoundsError(StepperError, IndexError): pass
