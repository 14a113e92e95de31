"""
The single-page transcript viewer.

Kept as a plain string so the server ships as pure Python with no static
directory. The page talks to:

  GET /api/projects                        sidebar listing
  GET /api/sessions/{project}/{session}    transcript pane
  GET /api/events                          SSE; any file_change triggers a reload

Transcript content is only ever inserted with textContent.
"""

VIEWER_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Claude Code Transcript Viewer</title>
  <style>
    * { margin: 0; padding: 0; box-sizing: border-box; }

    body {
      font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif;
      background: #0d1117;
      color: #c9d1d9;
      display: flex;
      height: 100vh;
      overflow: hidden;
    }

    .sidebar {
      width: 300px;
      background: #161b22;
      border-right: 1px solid #30363d;
      display: flex;
      flex-direction: column;
      overflow: hidden;
    }

    .sidebar-header {
      padding: 20px;
      border-bottom: 1px solid #30363d;
    }

    .sidebar-header h1 { font-size: 18px; font-weight: 600; margin-bottom: 8px; }

    .connection-status {
      font-size: 12px;
      color: #8b949e;
      display: flex;
      align-items: center;
      gap: 6px;
    }

    .status-dot { width: 8px; height: 8px; border-radius: 50%; background: #6e7681; }
    .status-dot.connected { background: #238636; }

    .sidebar-content { flex: 1; overflow-y: auto; padding: 12px; }

    .project { margin-bottom: 16px; }

    .project-name {
      font-size: 13px;
      font-weight: 600;
      color: #58a6ff;
      padding: 6px 8px;
      cursor: pointer;
      border-radius: 6px;
      overflow: hidden;
      text-overflow: ellipsis;
      white-space: nowrap;
    }

    .project-name:hover, .project-name.expanded { background: #1c2128; }

    .sessions { margin-left: 12px; margin-top: 4px; display: none; }
    .sessions.visible { display: block; }

    .session-item {
      font-size: 12px;
      padding: 6px 8px;
      cursor: pointer;
      border-radius: 4px;
      margin-bottom: 2px;
      display: flex;
      justify-content: space-between;
      align-items: center;
      gap: 8px;
    }

    .session-item:hover { background: #1c2128; }
    .session-item.active { background: #1f6feb; color: #fff; }
    .session-time { font-size: 10px; color: #8b949e; white-space: nowrap; }

    .main-content { flex: 1; display: flex; flex-direction: column; overflow: hidden; }

    .viewer-header { padding: 20px; border-bottom: 1px solid #30363d; }
    .viewer-header h2 { font-size: 16px; font-weight: 600; margin-bottom: 4px; }
    .viewer-header .session-info { font-size: 12px; color: #8b949e; }

    .transcript { flex: 1; overflow-y: auto; padding: 20px; }

    .message {
      margin-bottom: 20px;
      padding: 16px;
      background: #161b22;
      border: 1px solid #30363d;
      border-radius: 6px;
    }

    .message.parse-error { border-color: #da3633; }

    .message-header {
      display: flex;
      justify-content: space-between;
      align-items: center;
      margin-bottom: 12px;
      padding-bottom: 8px;
      border-bottom: 1px solid #30363d;
    }

    .message-type { font-size: 12px; font-weight: 600; color: #58a6ff; text-transform: uppercase; }
    .message-time { font-size: 11px; color: #8b949e; }

    .message-content {
      font-family: ui-monospace, SFMono-Regular, Menlo, monospace;
      font-size: 12px;
      line-height: 1.6;
      white-space: pre-wrap;
      word-wrap: break-word;
    }

    .sub-agents-title { margin: 32px 0 16px; font-size: 15px; }

    .sub-agent-badge {
      display: inline-block;
      font-size: 10px;
      padding: 2px 8px;
      background: #1f6feb;
      color: #fff;
      border-radius: 12px;
      margin-left: 8px;
      text-transform: none;
    }

    .sub-agent-messages { margin-top: 12px; display: none; }
    .sub-agent-messages.visible { display: block; }
    .toggle { cursor: pointer; color: #58a6ff; font-size: 11px; }

    .empty-state { text-align: center; padding: 60px 20px; color: #8b949e; }
    .empty-state h3 { font-size: 16px; margin-bottom: 8px; }
    .empty-state p { font-size: 13px; }

    ::-webkit-scrollbar { width: 8px; height: 8px; }
    ::-webkit-scrollbar-track { background: #0d1117; }
    ::-webkit-scrollbar-thumb { background: #30363d; border-radius: 4px; }
    ::-webkit-scrollbar-thumb:hover { background: #484f58; }
  </style>
</head>
<body>
  <div class="sidebar">
    <div class="sidebar-header">
      <h1>Claude Code Transcripts</h1>
      <div class="connection-status">
        <span class="status-dot" id="statusDot"></span>
        <span id="statusText">Connecting...</span>
      </div>
    </div>
    <div class="sidebar-content" id="projectList"></div>
  </div>

  <div class="main-content">
    <div class="viewer-header">
      <h2 id="sessionTitle">Select a session to view</h2>
      <div class="session-info" id="sessionInfo"></div>
    </div>
    <div class="transcript" id="transcript">
      <div class="empty-state">
        <h3>No session selected</h3>
        <p>Choose a project and session from the sidebar to view its transcript.</p>
      </div>
    </div>
  </div>

  <script>
    let eventSource = null;
    let currentSession = null;
    const expandedProjects = new Set();

    function el(tag, className, text) {
      const node = document.createElement(tag);
      if (className) node.className = className;
      if (text !== undefined) node.textContent = text;
      return node;
    }

    // ---- live updates ----

    function connectEvents() {
      eventSource = new EventSource('/api/events');

      eventSource.onopen = () => updateConnectionStatus(true);

      eventSource.onerror = () => {
        updateConnectionStatus(false);
        eventSource.close();
        setTimeout(connectEvents, 5000);
      };

      eventSource.onmessage = (event) => {
        try {
          handleEvent(JSON.parse(event.data));
        } catch (e) {
          console.error('Error parsing event:', e);
        }
      };
    }

    function handleEvent(event) {
      switch (event.type) {
        case 'connected':
          console.log('Connected as', event.data.clientId);
          break;
        case 'heartbeat':
          break;
        case 'file_change':
          if (currentSession) {
            loadSession(currentSession.projectName, currentSession.sessionId);
          }
          loadProjects();
          break;
      }
    }

    function updateConnectionStatus(connected) {
      document.getElementById('statusDot').classList.toggle('connected', connected);
      document.getElementById('statusText').textContent = connected ? 'Connected' : 'Disconnected';
    }

    // ---- sidebar ----

    async function loadProjects() {
      try {
        const response = await fetch('/api/projects');
        const body = await response.json();
        if (!response.ok) throw new Error(body.error || response.statusText);
        renderProjects(body.projects);
      } catch (error) {
        console.error('Error loading projects:', error);
      }
    }

    function renderProjects(projects) {
      const projectList = document.getElementById('projectList');
      projectList.innerHTML = '';

      if (projects.length === 0) {
        const empty = el('div', 'empty-state');
        empty.appendChild(el('p', null, 'No transcripts found.'));
        projectList.appendChild(empty);
        return;
      }

      for (const project of projects) {
        const projectDiv = el('div', 'project');
        const projectName = el('div', 'project-name', project.name);
        projectName.title = project.path;
        const sessionsDiv = el('div', 'sessions');

        if (expandedProjects.has(project.name)) {
          projectName.classList.add('expanded');
          sessionsDiv.classList.add('visible');
        }

        projectName.onclick = () => {
          const open = sessionsDiv.classList.toggle('visible');
          projectName.classList.toggle('expanded', open);
          if (open) expandedProjects.add(project.name);
          else expandedProjects.delete(project.name);
        };

        for (const session of project.sessions) {
          const item = el('div', 'session-item');
          if (currentSession && currentSession.projectName === project.name
              && currentSession.sessionId === session.sessionId) {
            item.classList.add('active');
          }
          const label = session.sessionId.length > 20
            ? session.sessionId.substring(0, 20) + '...'
            : session.sessionId;
          item.appendChild(el('span', null, label));
          item.appendChild(el('span', 'session-time', formatTimeAgo(session.lastModified)));
          item.onclick = () => {
            document.querySelectorAll('.session-item').forEach(n => n.classList.remove('active'));
            item.classList.add('active');
            loadSession(project.name, session.sessionId);
          };
          sessionsDiv.appendChild(item);
        }

        projectDiv.appendChild(projectName);
        projectDiv.appendChild(sessionsDiv);
        projectList.appendChild(projectDiv);
      }
    }

    // ---- transcript pane ----

    async function loadSession(projectName, sessionId) {
      try {
        const url = '/api/sessions/' + encodeURIComponent(projectName) + '/' + encodeURIComponent(sessionId);
        const response = await fetch(url);
        const body = await response.json();
        if (!response.ok) throw new Error(body.error || response.statusText);

        const session = body.session;
        currentSession = { projectName, sessionId };

        document.getElementById('sessionTitle').textContent = sessionId;
        document.getElementById('sessionInfo').textContent =
          'Project: ' + projectName
          + ' \\u2022 Messages: ' + session.messages.length
          + ' \\u2022 Sub-agents: ' + session.subAgents.length;

        renderTranscript(session);
      } catch (error) {
        console.error('Error loading session:', error);
      }
    }

    function renderMessage(message) {
      const type = (message && message.type) || 'unknown';
      const messageDiv = el('div', type === 'parse_error' ? 'message parse-error' : 'message');
      const header = el('div', 'message-header');
      header.appendChild(el('div', 'message-type', type));
      header.appendChild(el('div', 'message-time', formatTimestamp(message && message.timestamp)));
      messageDiv.appendChild(header);
      messageDiv.appendChild(el('div', 'message-content', formatMessageContent(message)));
      return messageDiv;
    }

    function renderTranscript(session) {
      const transcript = document.getElementById('transcript');
      transcript.innerHTML = '';

      if (session.messages.length === 0) {
        const empty = el('div', 'empty-state');
        empty.appendChild(el('h3', null, 'No messages'));
        empty.appendChild(el('p', null, 'This session has no recorded messages.'));
        transcript.appendChild(empty);
      }

      for (const message of session.messages) {
        transcript.appendChild(renderMessage(message));
      }

      if (session.subAgents.length === 0) return;

      transcript.appendChild(el('h3', 'sub-agents-title', 'Sub-Agents'));

      for (const agent of session.subAgents) {
        const agentDiv = el('div', 'message');
        const header = el('div', 'message-header');
        const title = el('div', 'message-type', 'Sub-Agent');
        title.appendChild(el('span', 'sub-agent-badge', agent.id.substring(0, 8)));
        header.appendChild(title);
        header.appendChild(el('div', 'message-time', agent.messages.length + ' messages'));

        const content = el('div', 'message-content',
          'Agent ID: ' + agent.id + '\\nMessages: ' + agent.messages.length + '\\nPath: ' + agent.path);

        const messagesDiv = el('div', 'sub-agent-messages');
        const toggle = el('div', 'toggle', 'Show messages');
        toggle.onclick = () => {
          if (!messagesDiv.hasChildNodes()) {
            for (const message of agent.messages) messagesDiv.appendChild(renderMessage(message));
          }
          const open = messagesDiv.classList.toggle('visible');
          toggle.textContent = open ? 'Hide messages' : 'Show messages';
        };

        agentDiv.appendChild(header);
        agentDiv.appendChild(content);
        if (agent.messages.length > 0) agentDiv.appendChild(toggle);
        agentDiv.appendChild(messagesDiv);
        transcript.appendChild(agentDiv);
      }
    }

    function formatMessageContent(message) {
      if (typeof message === 'string') return message;
      if (message === null || typeof message !== 'object') return JSON.stringify(message);
      if (message.type === 'parse_error') return message.raw;
      if (message.message && message.message.content !== undefined) {
        return JSON.stringify(message.message.content, null, 2);
      }
      if (message.content !== undefined) return JSON.stringify(message.content, null, 2);
      if (message.text) return message.text;
      return JSON.stringify(message, null, 2);
    }

    function formatTimestamp(timestamp) {
      if (!timestamp) return '';
      return new Date(timestamp).toLocaleString();
    }

    function formatTimeAgo(timestamp) {
      const diff = Date.now() - timestamp;
      const minutes = Math.floor(diff / 60000);
      const hours = Math.floor(diff / 3600000);
      const days = Math.floor(diff / 86400000);

      if (minutes < 1) return 'just now';
      if (minutes < 60) return minutes + 'm ago';
      if (hours < 24) return hours + 'h ago';
      return days + 'd ago';
    }

    connectEvents();
    loadProjects();
  </script>
</body>
</html>
"""
