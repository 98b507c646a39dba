TEAMS_QUERY = """
query FindTeams($name: String!, $limit: Int!) {
  teams(filter: { name: { contains: $name } }, first: $limit) {
    edges { node { id name title { name } titles { name } } }
  }
}
"""

TEAMS_QUERY_BASIC = """
query FindTeams($name: String!, $limit: Int!) {
  teams(filter: { name: { contains: $name } }, first: $limit) {
    edges { node { id name } }
  }
}
"""

RECENT_SERIES_QUERY = """
query RecentSeries($teamId: ID!, $limit: Int!) {
  allSeries(
    filter: { teamId: $teamId }
    first: $limit
    orderBy: StartTimeScheduled
    orderDirection: DESC
  ) {
    edges { node { id startTimeScheduled } }
  }
}
"""

SERIES_STATE_QUERY = """
query SeriesState($id: ID!) {
  seriesState(id: $id) {
    id
    finished
    startedAt
    teams {
      id
      name
      score
      won
      players { id name }
    }
    games {
      id
      sequenceNumber
      map { name }
      teams {
        id
        name
        score
        won
        players { id name }
      }
    }
    draftActions {
      type
      drafter { id }
      draftable { name type }
    }
  }
}
"""

# Without draft actions, for feeds that reject the field.
SERIES_STATE_QUERY_BASIC = """
query SeriesState($id: ID!) {
  seriesState(id: $id) {
    id
    finished
    startedAt
    teams { id name score won players { id name } }
    games {
      id
      sequenceNumber
      map { name }
      teams { id name score won players { id name } }
    }
  }
}
"""
