"""
HTML shell of the preview artifact.

The page reads two embedded JSON values: the sidebar tree and a map from
root-relative markdown path to rendered HTML. Placeholders are filled by
preview_emit.render_artifact.
"""

TREE_PLACEHOLDER = "{{TREE_JSON}}"
FILES_PLACEHOLDER = "{{FILES_JSON}}"
TITLE_PLACEHOLDER = "{{TITLE}}"

MERMAID_CDN = "https://cdnjs.cloudflare.com/ajax/libs/mermaid/11.12.0/mermaid.min.js"

HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{TITLE}}</title>
    <style>
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body {
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif;
            background: #1e1e1e;
            color: #d4d4d4;
            display: flex;
            height: 100vh;
            overflow: hidden;
        }
        .hidden { display: none !important; }
        /* sidebar */
        .sidebar {
            width: 300px;
            background: #252526;
            border-right: 1px solid #3e3e42;
            display: flex;
            flex-direction: column;
            overflow: hidden;
        }
        .sidebar-header { padding: 15px; background: #2d2d30; border-bottom: 1px solid #3e3e42; }
        .sidebar-header h1 { font-size: 18px; color: #ffffff; margin-bottom: 10px; }
        .search-box {
            width: 100%;
            padding: 8px 12px;
            background: #3c3c3c;
            border: 1px solid #3e3e42;
            border-radius: 4px;
            color: #d4d4d4;
            font-size: 14px;
        }
        .search-box:focus { outline: none; border-color: #007acc; }
        .file-tree { flex: 1; overflow-y: auto; padding: 10px; }
        .tree-item {
            padding: 4px 8px;
            cursor: pointer;
            border-radius: 3px;
            user-select: none;
            display: flex;
            align-items: center;
            font-size: 14px;
        }
        .tree-item:hover { background: #2a2d2e; }
        .tree-item.active { background: #37373d; color: #ffffff; }
        .tree-item.folder { font-weight: 500; color: #4ec9b0; }
        .tree-item.file { color: #9cdcfe; }
        .tree-item-icon { margin-right: 6px; font-size: 12px; width: 16px; text-align: center; }
        .tree-item-icon.expandable { transition: transform 0.2s; }
        .tree-children.collapsed { display: none; }
        /* content */
        .content-area { flex: 1; display: flex; flex-direction: column; overflow: hidden; }
        .content-header { padding: 15px 20px; background: #2d2d30; border-bottom: 1px solid #3e3e42; }
        .content-header h2 { font-size: 16px; color: #ffffff; }
        .content-body { flex: 1; overflow-y: auto; padding: 30px; }
        .empty-state { text-align: center; margin-top: 20vh; color: #858585; }
        .empty-state h3 { margin-bottom: 10px; }
        .markdown-body { max-width: 900px; margin: 0 auto; line-height: 1.6; }
        .markdown-body h1, .markdown-body h2, .markdown-body h3,
        .markdown-body h4, .markdown-body h5, .markdown-body h6 {
            margin-top: 24px;
            margin-bottom: 16px;
            font-weight: 600;
            line-height: 1.25;
            color: #ffffff;
        }
        .markdown-body h1 { font-size: 2em; border-bottom: 1px solid #3e3e42; padding-bottom: 10px; }
        .markdown-body h2 { font-size: 1.5em; border-bottom: 1px solid #3e3e42; padding-bottom: 8px; }
        .markdown-body h3 { font-size: 1.25em; }
        .markdown-body p { margin-bottom: 16px; }
        .markdown-body code {
            background: #2d2d30;
            padding: 2px 6px;
            border-radius: 3px;
            font-family: "Consolas", "Monaco", "Courier New", monospace;
            font-size: 0.9em;
            color: #d7ba7d;
        }
        .markdown-body pre {
            background: #252526;
            border: 1px solid #3e3e42;
            border-radius: 6px;
            padding: 16px;
            overflow-x: auto;
            margin-bottom: 16px;
        }
        .markdown-body pre code { background: transparent; padding: 0; color: #d4d4d4; font-size: 14px; display: block; }
        .markdown-body ul, .markdown-body ol { margin-bottom: 16px; padding-left: 30px; }
        .markdown-body li { margin-bottom: 8px; }
        .markdown-body blockquote { border-left: 4px solid #007acc; padding-left: 16px; margin: 16px 0; color: #858585; }
        .markdown-body table { border-collapse: collapse; margin-bottom: 16px; width: 100%; }
        .markdown-body th, .markdown-body td { border: 1px solid #3e3e42; padding: 8px 12px; text-align: left; }
        .markdown-body th { background: #2d2d30; font-weight: 600; color: #ffffff; }
        .markdown-body tr:nth-child(even) { background: #252526; }
        .markdown-body a { color: #4ec9b0; text-decoration: none; }
        .markdown-body a:hover { text-decoration: underline; }
        .markdown-body img { max-width: 100%; height: auto; border-radius: 4px; margin: 16px 0; }
        .markdown-body .mermaid { background: #252526; border-radius: 6px; padding: 16px; margin-bottom: 16px; text-align: center; }
        .preview-image { cursor: zoom-in; }
        /* code block copy button */
        .code-block-wrapper { margin-bottom: 16px; }
        .code-block-header {
            display: flex;
            justify-content: space-between;
            align-items: center;
            background: #2d2d30;
            border: 1px solid #3e3e42;
            border-bottom: none;
            border-radius: 6px 6px 0 0;
            padding: 8px 12px;
            font-size: 12px;
            color: #858585;
        }
        .code-block-header .language { font-weight: 500; color: #4ec9b0; }
        .copy-button {
            background: #3c3c3c;
            border: 1px solid #3e3e42;
            color: #d4d4d4;
            padding: 4px 12px;
            border-radius: 4px;
            cursor: pointer;
            font-size: 12px;
        }
        .copy-button:hover { background: #4c4c4c; border-color: #007acc; }
        .copy-button.copied { background: #007acc; color: #ffffff; }
        .code-block-wrapper pre { margin: 0; border-radius: 0 0 6px 6px; }
        /* image lightbox */
        .image-modal {
            display: none;
            position: fixed;
            z-index: 1000;
            inset: 0;
            background-color: rgba(0, 0, 0, 0.9);
            cursor: zoom-out;
        }
        .image-modal.active { display: flex; align-items: center; justify-content: center; }
        .image-modal img { max-width: 90%; max-height: 90%; object-fit: contain; border-radius: 8px; }
        .image-modal-close { position: absolute; top: 20px; right: 30px; color: #ffffff; font-size: 40px; cursor: pointer; }
    </style>
    <script src="__MERMAID_CDN__"></script>
</head>
<body>
    <div class="sidebar">
        <div class="sidebar-header">
            <h1>Notes</h1>
            <input type="text" class="search-box" id="searchBox" placeholder="Search files...">
        </div>
        <div class="file-tree" id="fileTree"></div>
    </div>
    <div class="content-area">
        <div class="content-header">
            <h2 id="currentFile">Select a file</h2>
        </div>
        <div class="content-body">
            <div class="empty-state" id="emptyState">
                <h3>Pick a file on the left</h3>
                <p>Choose a markdown file to start previewing</p>
            </div>
            <div class="markdown-body hidden" id="markdownContent"></div>
        </div>
    </div>

    <div class="image-modal" id="imageModal" onclick="closeImageModal()">
        <span class="image-modal-close" onclick="closeImageModal()">&times;</span>
        <img id="modalImage" src="" alt="Image preview">
    </div>

    <script>
        const fileTreeData = {{TREE_JSON}};
        const filesData = {{FILES_JSON}};

        if (typeof mermaid !== 'undefined') {
            mermaid.initialize({
                startOnLoad: false,
                theme: 'dark',
                themeVariables: {
                    primaryColor: '#007acc',
                    primaryTextColor: '#d4d4d4',
                    primaryBorderColor: '#3e3e42',
                    lineColor: '#4ec9b0',
                    secondaryColor: '#252526',
                    tertiaryColor: '#1e1e1e'
                }
            });
        }

        function setExpanded(icon, expanded) {
            icon.dataset.expanded = expanded ? 'true' : 'false';
            icon.style.transform = expanded ? 'rotate(90deg)' : 'rotate(0deg)';
        }

        function renderTree(nodes, container, level) {
            nodes.forEach(node => {
                const item = document.createElement('div');
                item.className = 'tree-item' + (node.isDir ? ' folder' : ' file');
                item.style.paddingLeft = (level * 16 + 8) + 'px';

                const icon = document.createElement('span');
                icon.className = 'tree-item-icon';
                const hasChildren = node.isDir && node.children && node.children.length > 0;
                if (hasChildren) {
                    icon.textContent = '\\u25b6';
                    icon.classList.add('expandable');
                    setExpanded(icon, false);
                    icon.addEventListener('click', (e) => {
                        e.stopPropagation();
                        const expanded = icon.dataset.expanded === 'true';
                        const childrenContainer = item.nextElementSibling;
                        setExpanded(icon, !expanded);
                        if (childrenContainer) {
                            childrenContainer.classList.toggle('collapsed', expanded);
                        }
                    });
                } else {
                    icon.textContent = node.isDir ? '\\ud83d\\udcc1' : '\\ud83d\\udcc4';
                }

                const name = document.createElement('span');
                name.textContent = node.name;
                item.appendChild(icon);
                item.appendChild(name);

                if (node.isDir) {
                    item.addEventListener('click', (e) => {
                        if (e.target !== icon && hasChildren) {
                            icon.click();
                        }
                    });
                } else {
                    item.addEventListener('click', () => {
                        document.querySelectorAll('.tree-item.active').forEach(el => el.classList.remove('active'));
                        item.classList.add('active');
                        showFile(node.path);
                    });
                }
                container.appendChild(item);

                if (hasChildren) {
                    const childrenContainer = document.createElement('div');
                    childrenContainer.className = 'tree-children collapsed';
                    container.appendChild(childrenContainer);
                    renderTree(node.children, childrenContainer, level + 1);
                }
            });
        }

        function showFile(path) {
            const contentDiv = document.getElementById('markdownContent');
            const emptyState = document.getElementById('emptyState');
            const currentFile = document.getElementById('currentFile');
            const content = filesData[path];

            if (content === undefined) {
                contentDiv.classList.add('hidden');
                emptyState.classList.remove('hidden');
                currentFile.textContent = 'File not found';
                return;
            }
            contentDiv.innerHTML = content;
            processCodeBlocks(contentDiv);
            if (typeof mermaid !== 'undefined') {
                mermaid.run({ nodes: contentDiv.querySelectorAll('.mermaid') });
            }
            contentDiv.classList.remove('hidden');
            emptyState.classList.add('hidden');
            currentFile.textContent = path;
        }

        function processCodeBlocks(container) {
            container.querySelectorAll('pre > code').forEach(code => {
                const pre = code.parentElement;
                let language = 'text';
                for (const cls of code.classList) {
                    if (cls.startsWith('language-')) {
                        language = cls.slice('language-'.length);
                        break;
                    }
                }

                const wrapper = document.createElement('div');
                wrapper.className = 'code-block-wrapper';
                const header = document.createElement('div');
                header.className = 'code-block-header';
                const langSpan = document.createElement('span');
                langSpan.className = 'language';
                langSpan.textContent = language;
                const copyBtn = document.createElement('button');
                copyBtn.className = 'copy-button';
                copyBtn.textContent = 'Copy';
                copyBtn.dataset.code = code.textContent;
                copyBtn.addEventListener('click', () => copyCode(copyBtn));
                header.appendChild(langSpan);
                header.appendChild(copyBtn);

                pre.parentNode.insertBefore(wrapper, pre);
                wrapper.appendChild(header);
                wrapper.appendChild(pre);
            });
        }

        function copyCode(button) {
            navigator.clipboard.writeText(button.dataset.code).then(() => {
                button.textContent = 'Copied!';
                button.classList.add('copied');
                setTimeout(() => {
                    button.textContent = 'Copy';
                    button.classList.remove('copied');
                }, 2000);
            }).catch(err => {
                console.error('copy failed:', err);
                alert('Copy failed, please select the code manually');
            });
        }

        function openImageModal(src) {
            document.getElementById('modalImage').src = src;
            document.getElementById('imageModal').classList.add('active');
        }

        function closeImageModal() {
            document.getElementById('imageModal').classList.remove('active');
        }

        document.addEventListener('keydown', (e) => {
            if (e.key === 'Escape') {
                closeImageModal();
            }
        });

        document.getElementById('searchBox').addEventListener('input', (e) => {
            const term = e.target.value.toLowerCase();
            document.querySelectorAll('.tree-item').forEach(item => {
                if (!item.textContent.toLowerCase().includes(term)) {
                    item.classList.add('hidden');
                    return;
                }
                item.classList.remove('hidden');
                let parent = item.parentElement;
                while (parent && parent.classList.contains('tree-children')) {
                    parent.classList.remove('collapsed');
                    const icon = parent.previousElementSibling && parent.previousElementSibling.querySelector('.expandable');
                    if (icon) {
                        setExpanded(icon, true);
                    }
                    parent = parent.parentElement;
                }
            });
        });

        renderTree(fileTreeData, document.getElementById('fileTree'), 0);
    </script>
</body>
</html>
""".replace("__MERMAID_CDN__", MERMAID_CDN)
