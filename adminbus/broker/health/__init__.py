from .liveness import LivenessCheck as LivenessCheck
from .liveness import create_tcp_liveness_check as create_tcp_liveness_check
from .liveness import tcp_liveness_check as tcp_liveness_check
