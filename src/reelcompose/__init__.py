"""reelcompose — frame-indexed animated video composition.

Compose short animated videos from nested, time-boxed scenes driven by a
single frame counter. Every frame is a pure function of its number:
sequences resolve local frames, springs and interpolation drive motion,
and audio tracks are mixed on the same clock. Compositions are declared
in YAML manifests or built directly in Python.
"""
