"""Level milestone endpoints, ordered by ascending tier."""
from rewardhub.api.crud import build_crud_router
from rewardhub.api.deps import get_milestone_repository
from rewardhub.schemas import LevelMilestone, LevelMilestoneCreate, LevelMilestoneUpdate

router = build_crud_router(
    prefix="/api/milestones",
    tag="milestones",
    label="milestone",
    plural="milestones",
    repository=get_milestone_repository,
    create_model=LevelMilestoneCreate,
    update_model=LevelMilestoneUpdate,
    response_model=LevelMilestone,
)
