import pytest

from commit_timeline.commits import aggregate_commits
from commit_timeline.controller import ExplorerSession
from commit_timeline.records import LineRecord, parse_offset, parse_timestamp
from commit_timeline.reporting import ProgressReporter

CSV_HEADER = "file,line,type,commit,author,date,time,timezone,datetime,depth,length"

# Deliberately out of chronological order: the middle commit comes first.
SAMPLE_ROWS = [
    # file, line, type, commit, author, date, time, tz, datetime, depth, length
    ("index.html", 1, "html", "b2c3d4e5f6", "Bob", "2024-02-11", "14:30:00-08:00", "-08:00",
     "2024-02-11T14:30:00-08:00", 2, 40),
    ("js/global.js", 1, "js", "b2c3d4e5f6", "Bob", "2024-02-11", "14:30:00-08:00", "-08:00",
     "2024-02-11T14:30:00-08:00", 3, 55),
    ("js/global.js", 2, "js", "b2c3d4e5f6", "Bob", "2024-02-11", "14:30:00-08:00", "-08:00",
     "2024-02-11T14:30:00-08:00", 1, 10),
    ("index.html", 1, "html", "a1b2c3d4e5", "Alice", "2024-02-10", "09:15:00-08:00", "-08:00",
     "2024-02-10T09:15:00-08:00", 1, 20),
    ("style.css", 1, "css", "a1b2c3d4e5", "Alice", "2024-02-10", "09:15:00-08:00", "-08:00",
     "2024-02-10T09:15:00-08:00", 0, 15),
    ("style.css", 1, "css", "c3d4e5f6a7", "Alice", "2024-02-12", "23:50:00-08:00", "-08:00",
     "2024-02-12T23:50:00-08:00", 0, 80),
    ("style.css", 2, "css", "c3d4e5f6a7", "Alice", "2024-02-12", "23:50:00-08:00", "-08:00",
     "2024-02-12T23:50:00-08:00", 1, 12),
]

FIRST_ID = "a1b2c3d4e5"
SECOND_ID = "b2c3d4e5f6"
THIRD_ID = "c3d4e5f6a7"


def make_record(
    commit_id="abc123",
    file="src/main.py",
    type="py",
    moment="2024-02-10T09:15:00-08:00",
    line=1,
    depth=0,
    length=10,
    author="Alice",
):
    dt = parse_timestamp(moment)
    tz_text = moment[-6:]
    return LineRecord(
        commit_id=commit_id,
        file=file,
        type=type,
        line=line,
        depth=depth,
        length=length,
        author=author,
        date=parse_timestamp(f"{moment[:10]}T00:00", default_tz=parse_offset(tz_text)),
        time=moment[11:],
        timezone=tz_text,
        datetime=dt,
    )


def write_csv(path, rows, header=CSV_HEADER):
    lines = [header] + [",".join(str(v) for v in row) for row in rows]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def quiet_reporter():
    return ProgressReporter(quiet=True)


@pytest.fixture
def sample_records():
    """Seven line records over three commits spanning three days."""
    return [
        make_record(
            commit_id=commit,
            file=file,
            type=kind,
            moment=moment,
            line=line,
            depth=depth,
            length=length,
            author=author,
        )
        for file, line, kind, commit, author, _, _, _, moment, depth, length in SAMPLE_ROWS
    ]


@pytest.fixture
def commit_set(sample_records):
    return aggregate_commits(sample_records, repo_url="https://github.com/example/site")


@pytest.fixture
def session(commit_set):
    return ExplorerSession(commit_set)


@pytest.fixture
def loc_csv(tmp_path):
    """The sample dataset written as loc.csv."""
    return write_csv(tmp_path / "loc.csv", SAMPLE_ROWS)
