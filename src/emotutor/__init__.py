"""
emotutor — Emotion-Aware Adaptive Tutor
---------------------------------------

Modules:
- config         : load YAML into dataclasses
- errors         : setup / sample / precondition failures
- content        : per-subject lesson statements + simplified restatements
- affect         : affect sources (camera detector, simulator)
- models         : expression network + face/expression detector
- strategy       : affect → lesson adaptation
- voice          : single-flight narration driver + voice engines
- loop           : teaching loop controller + presenters
- factory        : build the controller from a Config
- server         : FastAPI service
- ui             : escaped HTML fragments for the Streamlit page
"""
__version__ = "0.1.0"
