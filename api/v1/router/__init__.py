from api.v1.router.study_plans import router as study_plans
from api.v1.router.documents import router as documents
from api.v1.router.files import router as files
from api.v1.router.ai import router as ai
from api.v1.router.preferences import router as preferences
