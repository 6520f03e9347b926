import pytest
from testdesk.api.services.auth import AuthService
from testdesk.api.services.errors import NotFoundError
from testdesk.api.services.issue_item import IssueItemService
from testdesk.api.services.project import ProjectService
from testdesk.api.services.test_item import TestItemService
from testdesk.spreadsheet import ImportRow

@pytest.mark.asyncio
async def test_create_keeps_insertion_order(db_session, project):
    """测试项按添加顺序排列"""
    names = ["첫째", "둘째", "셋째"]
    for name in names:
        await TestItemService.create_test_item(project.id, {"name": name}, db_session)

    items = await TestItemService.list_by_project(project.id, db_session)
    assert [i.name for i in items] == names
    assert [i.position for i in items] == [1, 2, 3]
    assert items[0].progress_status == "대기중"
    assert items[0].report_status == "대기중"
    assert items[0].test_result == ""
    assert items[0].photos == []

@pytest.mark.asyncio
async def test_list_filter_by_result(db_session, project):
    await TestItemService.create_test_item(project.id, {"name": "A", "test_result": "OK"}, db_session)
    await TestItemService.create_test_item(project.id, {"name": "B", "test_result": "NG"}, db_session)
    await TestItemService.create_test_item(project.id, {"name": "C"}, db_session)

    assert [i.name for i in await TestItemService.list_by_project(project.id, db_session, "NG")] == ["B"]
    assert [i.name for i in await TestItemService.list_by_project(project.id, db_session, "")] == ["C"]

@pytest.mark.asyncio
async def test_list_all_only_own_items(db_session, user, project):
    other = await AuthService.register("someone", "secret", db_session)
    other_project = await ProjectService.create_project(other.id, {"name": "X"}, db_session)
    await TestItemService.create_test_item(project.id, {"name": "mine"}, db_session)
    await TestItemService.create_test_item(other_project.id, {"name": "theirs"}, db_session)

    assert [i.name for i in await TestItemService.list_all(user.id, db_session)] == ["mine"]

@pytest.mark.asyncio
async def test_bulk_create_appends_after_existing(db_session, project):
    """批量创建的测试项排在已有测试项之后"""
    await TestItemService.create_test_item(project.id, {"name": "기존"}, db_session)
    rows = [ImportRow(name="신규 1", test_result="OK"), ImportRow(name="신규 2", planned_start_date="2024-02-01")]

    created = await TestItemService.bulk_create(project.id, rows, db_session)

    assert [i.name for i in created] == ["신규 1", "신규 2"]
    items = await TestItemService.list_by_project(project.id, db_session)
    assert [i.name for i in items] == ["기존", "신규 1", "신규 2"]
    assert items[1].test_result == "OK"
    assert items[2].planned_start_date == "2024-02-01"

@pytest.mark.asyncio
async def test_update_test_item(db_session, user, project):
    item = await TestItemService.create_test_item(project.id, {"name": "A"}, db_session)

    updated = await TestItemService.update_test_item(
        item.id, {"test_result": "TBD", "notes": "재시험 필요"}, db_session, user.id
    )
    assert updated.test_result == "TBD"
    assert updated.notes == "재시험 필요"
    assert updated.name == "A"

@pytest.mark.asyncio
async def test_get_test_item_of_other_user(db_session, project):
    item = await TestItemService.create_test_item(project.id, {"name": "A"}, db_session)
    other = await AuthService.register("someone", "secret", db_session)

    with pytest.raises(NotFoundError):
        await TestItemService.get_test_item(item.id, db_session, other.id)
    with pytest.raises(NotFoundError):
        await TestItemService.get_test_item("missing", db_session)

@pytest.mark.asyncio
async def test_add_file(db_session, project):
    """照片保存URL, 附件保存完整信息"""
    item = await TestItemService.create_test_item(project.id, {"name": "A"}, db_session)
    info = {"url": "/uploads/a.png", "filename": "a.png", "size": 3}

    item = await TestItemService.add_file(item.id, "photos", info, db_session)
    item = await TestItemService.add_file(item.id, "attachments", info, db_session)

    assert item.photos == ["/uploads/a.png"]
    assert item.attachments == [info]
    with pytest.raises(ValueError):
        await TestItemService.add_file(item.id, "videos", info, db_session)

@pytest.mark.asyncio
async def test_delete_test_item_unlinks_issues(db_session, user, project):
    """删除测试项后, 关联它的问题项取消关联"""
    item = await TestItemService.create_test_item(project.id, {"name": "A"}, db_session)
    issue = await IssueItemService.create_issue_item(
        project.id, {"name": "I", "related_test_item_id": item.id}, db_session
    )
    assert issue.related_test_item_id == item.id

    await TestItemService.delete_test_item(item.id, db_session, user.id)

    assert await TestItemService.list_by_project(project.id, db_session) == []
    issue = await IssueItemService.get_issue_item(issue.id, db_session)
    await db_session.refresh(issue)
    assert issue.related_test_item_id is None

@pytest.mark.asyncio
async def test_issue_item_defaults_and_update(db_session, user, project):
    issue = await IssueItemService.create_issue_item(
        project.id, {"name": "누설 전류", "occurred_date": "2024-04-01"}, db_session
    )
    assert issue.severity == "Low"
    assert issue.progress_status == "대기중"
    assert issue.last_modified_date

    issue = await IssueItemService.update_issue_item(
        issue.id, {"severity": "High", "issue_cause": "절연 불량"}, db_session, user.id
    )
    assert issue.severity == "High"
    assert issue.issue_cause == "절연 불량"

@pytest.mark.asyncio
async def test_issue_item_related_test_item_must_be_same_project(db_session, user, project):
    """关联的测试项必须属于同一项目"""
    other_project = await ProjectService.create_project(user.id, {"name": "다른 프로젝트"}, db_session)
    foreign = await TestItemService.create_test_item(other_project.id, {"name": "F"}, db_session)

    with pytest.raises(ValueError):
        await IssueItemService.create_issue_item(
            project.id, {"name": "I", "related_test_item_id": foreign.id}, db_session
        )

    own = await TestItemService.create_test_item(project.id, {"name": "A"}, db_session)
    issue = await IssueItemService.create_issue_item(
        project.id, {"name": "I", "related_test_item_id": own.id}, db_session
    )
    issue = await IssueItemService.update_issue_item(issue.id, {"related_test_item_id": ""}, db_session)
    assert issue.related_test_item_id is None

@pytest.mark.asyncio
async def test_delete_issue_item(db_session, user, project):
    issue = await IssueItemService.create_issue_item(project.id, {"name": "I"}, db_session)
    assert await IssueItemService.delete_issue_item(issue.id, db_session, user.id)
    assert await IssueItemService.list_by_project(project.id, db_session) == []
