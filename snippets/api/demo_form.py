from __future__ import annotations

# 开发模式下 `GET /` 返回的测试表单：提交后在浏览器控制台打印状态码和 key
DEMO_FORM = """<!DOCTYPE html>
<script>
window.addEventListener('load', _ => {
  document.getElementById('submit-button').addEventListener('click', _ => {
    let content = document.getElementById('content').value;
    fetch('/', {
      method: 'POST',
      body:   content,
    }).then(response => {
      console.log('status:', response.status);
      return response.text();
    }).then(key => {
      console.log('key:', key);
    });
  });
});
</script>
<input id="content" type="text">
<button id="submit-button">Submit</button>
"""
